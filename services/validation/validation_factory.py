# -*- coding: utf-8 -*-
"""
Validation Factory - Creates the validators for each slice of the place form.

Provides a central point for creating and managing validation strategies.
"""

from typing import Any, Dict, List, Optional

from models.place import SectionType
from .validation_strategy import (
    CompositeValidator,
    ContentSectionsValidator,
    EmailValidator,
    ImagesValidator,
    LengthValidator,
    RangeValidator,
    UrlValidator,
    UuidListValidator,
    UuidValidator,
    ValidationStrategy,
)


class ValidationFactory:
    """
    Registry of validation strategies keyed by form slice.

    Slices: category, basic_info, location, description, images,
    properties_contact, and complete (all slices together).
    """

    STEP_SCHEMAS = [
        "category",
        "basic_info",
        "location",
        "description",
        "images",
        "properties_contact",
    ]

    def __init__(self, min_images: int = 1):
        """Initialize the validation factory."""
        self._validators: Dict[str, ValidationStrategy] = {}
        self._register_default_validators(min_images)

    def _register_default_validators(self, min_images: int):
        """Register built-in validators for every wizard step."""
        self.register_validator('category', CompositeValidator([
            UuidValidator('parent_category_id', 'Please select a parent category'),
            UuidListValidator('category_ids', 'Please select at least one category type', min_items=1),
        ]))

        self.register_validator('basic_info', CompositeValidator([
            LengthValidator('name_ar', 'Arabic name must be at least 2 characters',
                            min_length=2, max_length=200,
                            max_message='Arabic name must be less than 200 characters'),
            LengthValidator('name_en', 'English name must be at least 2 characters',
                            min_length=2, max_length=200,
                            max_message='English name must be less than 200 characters'),
        ]))

        self.register_validator('location', CompositeValidator([
            UuidValidator('governate_id', 'Please select a governate'),
            UuidValidator('wilayah_id', 'Please select a wilayah'),
            RangeValidator('latitude', -90, 90, 'Latitude must be between -90 and 90'),
            RangeValidator('longitude', -180, 180, 'Longitude must be between -180 and 180'),
        ]))

        self.register_validator('description', CompositeValidator([
            LengthValidator('description_ar', 'Arabic description must be at least 10 characters',
                            min_length=10),
            LengthValidator('description_en', 'English description must be at least 10 characters',
                            min_length=10),
            ContentSectionsValidator(SectionType.values()),
        ]))

        self.register_validator('images', ImagesValidator(min_images=min_images))

        self.register_validator('properties_contact', CompositeValidator([
            UuidListValidator('property_ids', 'Please select valid properties'),
            EmailValidator('email'),
            UrlValidator('website'),
        ]))

        self.register_validator('complete', CompositeValidator([
            self._validators[name] for name in self.STEP_SCHEMAS
        ]))

    def register_validator(self, record_type: str, validator: ValidationStrategy):
        """
        Register a validation strategy for a form slice.

        Args:
            record_type: Slice identifier (e.g., 'category', 'location')
            validator: ValidationStrategy instance
        """
        self._validators[record_type.lower()] = validator

    def get_validator(self, record_type: str) -> Optional[ValidationStrategy]:
        """Get a registered validator by slice name."""
        return self._validators.get(record_type.lower())

    def validate(self, record: Dict[str, Any], record_type: str) -> Dict[str, str]:
        """
        Validate a record using the appropriate validator.

        Returns:
            Field errors (empty if valid)
        """
        validator = self.get_validator(record_type)
        if not validator:
            return {"_schema": f"No validator registered for record type: {record_type}"}

        return validator.validate(record)

    def is_valid(self, record: Dict[str, Any], record_type: str) -> bool:
        """Check if a record is valid."""
        return len(self.validate(record, record_type)) == 0

    def get_registered_types(self) -> List[str]:
        """Get list of registered slice names."""
        return list(self._validators.keys())
