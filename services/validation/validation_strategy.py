# -*- coding: utf-8 -*-
"""
Validation Strategy Pattern - Abstract interface for record validation.

Provides a pluggable architecture for the per-step rules of the place
form. Every strategy returns a field -> message mapping so that errors
can be attached to the offending form control.
"""

import re
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_uuid(value: Any) -> bool:
    """True for canonical UUID strings."""
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


class ValidationStrategy(ABC):
    """
    Abstract base class for validation strategies.

    Each strategy implements specific validation rules for a slice of
    the place form.
    """

    @abstractmethod
    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        """
        Validate a record and return field errors.

        Args:
            record: Dictionary containing record data to validate

        Returns:
            Mapping of field name to error message (empty if valid)
        """
        pass

    def is_valid(self, record: Dict[str, Any]) -> bool:
        """Check if record is valid."""
        return len(self.validate(record)) == 0


class LengthValidator(ValidationStrategy):
    """Required text field with length bounds (stripped)."""

    def __init__(self, field: str, message: str, min_length: int = 1,
                 max_length: Optional[int] = None, max_message: Optional[str] = None):
        self.field = field
        self.message = message
        self.min_length = min_length
        self.max_length = max_length
        self.max_message = max_message or message

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        value = record.get(self.field) or ""
        if not isinstance(value, str):
            return {self.field: self.message}
        length = len(value.strip())
        if length < self.min_length:
            return {self.field: self.message}
        if self.max_length is not None and length > self.max_length:
            return {self.field: self.max_message}
        return {}


class UuidValidator(ValidationStrategy):
    """A single required UUID reference (category, governate, wilayah)."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        if not is_uuid(record.get(self.field)):
            return {self.field: self.message}
        return {}


class UuidListValidator(ValidationStrategy):
    """A list of UUID references with a minimum count."""

    def __init__(self, field: str, message: str, min_items: int = 0):
        self.field = field
        self.message = message
        self.min_items = min_items

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        values = record.get(self.field) or []
        if len(values) < self.min_items:
            return {self.field: self.message}
        for value in values:
            if not is_uuid(value):
                return {self.field: f"Invalid id in {self.field}: {value}"}
        return {}


class RangeValidator(ValidationStrategy):
    """Optional number within [minimum, maximum]."""

    def __init__(self, field: str, minimum: float, maximum: float, message: str):
        self.field = field
        self.minimum = minimum
        self.maximum = maximum
        self.message = message

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        value = record.get(self.field)
        if value is None:
            return {}
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return {self.field: self.message}
        if not (self.minimum <= value <= self.maximum):
            return {self.field: self.message}
        return {}


class EmailValidator(ValidationStrategy):
    """Optional email; empty string counts as absent."""

    EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

    def __init__(self, field: str = "email", message: str = "Invalid email format"):
        self.field = field
        self.message = message

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        value = record.get(self.field)
        if _is_blank(value):
            return {}
        if not isinstance(value, str) or not self.EMAIL_PATTERN.match(value.strip()):
            return {self.field: self.message}
        return {}


class UrlValidator(ValidationStrategy):
    """Optional http(s) URL; empty string counts as absent."""

    def __init__(self, field: str = "website", message: str = "Invalid website URL"):
        self.field = field
        self.message = message

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        value = record.get(self.field)
        if _is_blank(value):
            return {}
        if not isinstance(value, str):
            return {self.field: self.message}
        parsed = urlparse(value.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return {self.field: self.message}
        return {}


class ContentSectionsValidator(ValidationStrategy):
    """
    Every content section needs a known type and both titles.

    Errors are addressed as content_sections.<index>.<field>.
    """

    def __init__(self, allowed_types: List[str]):
        self.allowed_types = allowed_types

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        errors = {}
        for index, section in enumerate(record.get("content_sections") or []):
            prefix = f"content_sections.{index}"
            if section.get("section_type") not in self.allowed_types:
                errors[f"{prefix}.section_type"] = "Section type is required"
            if _is_blank(section.get("title_ar")):
                errors[f"{prefix}.title_ar"] = "Arabic title is required"
            if _is_blank(section.get("title_en")):
                errors[f"{prefix}.title_en"] = "English title is required"
            sort_order = section.get("sort_order", 0)
            if not isinstance(sort_order, int) or sort_order < 0:
                errors[f"{prefix}.sort_order"] = "Sort order must be zero or more"
        return errors


class ImagesValidator(ValidationStrategy):
    """At least min_images staged images with at most one primary."""

    def __init__(self, min_images: int = 1, message: str = "Please add at least one image"):
        self.min_images = min_images
        self.message = message

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        images = record.get("images") or []
        if len(images) < self.min_images:
            return {"images": self.message}
        if sum(1 for image in images if image.get("is_primary")) > 1:
            return {"images": "Only one image can be the cover image"}
        return {}


class CompositeValidator(ValidationStrategy):
    """Runs several strategies; the first error for a field wins."""

    def __init__(self, validators: List[ValidationStrategy]):
        self.validators = validators

    def validate(self, record: Dict[str, Any]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for validator in self.validators:
            for field, message in validator.validate(record).items():
                errors.setdefault(field, message)
        return errors
