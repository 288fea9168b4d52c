# -*- coding: utf-8 -*-
"""
Step validation service for the place submission wizard.

Validates form data for each step without UI coupling.
"""

from typing import Any, Dict, Optional

from app.config import WizardSteps
from services.validation import ValidationFactory


class StepValidator:
    """Validates wizard step data against the per-step schemas."""

    # Step number -> schema name
    STEP_SCHEMAS = {
        WizardSteps.CATEGORY: "category",
        WizardSteps.BASIC_INFO: "basic_info",
        WizardSteps.LOCATION: "location",
        WizardSteps.DESCRIPTION: "description",
        WizardSteps.IMAGES: "images",
        WizardSteps.PROPERTIES_CONTACT: "properties_contact",
        WizardSteps.REVIEW: "complete",
    }

    def __init__(self, factory: Optional[ValidationFactory] = None):
        self.factory = factory or ValidationFactory()

    def validate_step(self, step: int, record: Dict[str, Any]) -> Dict[str, str]:
        """
        Validate the slice of the form that belongs to a step.

        Args:
            step: 1-based wizard step
            record: Form document as a dict, with the staged images under "images"

        Returns:
            Field errors (empty if the step is valid)
        """
        schema = self.STEP_SCHEMAS.get(step)
        if schema is None:
            # Success step has nothing to validate
            return {}
        return self.factory.validate(record, schema)

    def validate_all(self, record: Dict[str, Any]) -> Dict[str, str]:
        """Cross-step validation used before submission."""
        return self.factory.validate(record, "complete")

    @staticmethod
    def get_step_name(step: int, arabic: bool = False) -> str:
        """Get display name for step."""
        return WizardSteps.get_title(step, arabic=arabic)
