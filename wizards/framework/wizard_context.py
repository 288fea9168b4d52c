# -*- coding: utf-8 -*-
"""
Wizard Context - Base class for managing wizard state and data.

Provides unified interface for:
- Step completion tracking
- Serialization for diagnostics
- Reference number generation
"""

from typing import Dict, Any, Optional, Set
from datetime import datetime
from abc import ABC, abstractmethod
import uuid


class WizardContext(ABC):
    """
    Base class for wizard context.

    Steps are 1-based. Subclasses implement:
    - to_dict(): Serialize context to dictionary
    - from_dict(): Restore context from dictionary
    """

    STATUSES = ("draft", "in_progress", "submitting", "completed")

    def __init__(self):
        """Initialize base context properties."""
        self.wizard_id: str = str(uuid.uuid4())
        self.status: str = "draft"
        self.created_at: datetime = datetime.now()
        self.updated_at: datetime = datetime.now()
        self.current_step: int = 1
        self.user_id: Optional[str] = None
        self.reference_number: str = self._generate_reference_number()

        # Step completion tracking
        self.completed_steps: Set[int] = set()

    def _generate_reference_number(self) -> str:
        """
        Generate a unique reference number for the wizard session.

        Format: {PREFIX}-{YYYYMMDDHHMMSS}-{SHORT_UUID}
        Example: PLC-20260118153045-A3F2
        """
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        short_id = self.wizard_id[:4].upper()
        prefix = self._get_reference_prefix()
        return f"{prefix}-{timestamp}-{short_id}"

    def _get_reference_prefix(self) -> str:
        """Get the prefix for reference number. Override in subclasses."""
        return "WIZ"

    def touch(self):
        self.updated_at = datetime.now()

    def mark_step_completed(self, step: int):
        """Mark a step as completed."""
        self.completed_steps.add(step)
        if self.status == "draft":
            self.status = "in_progress"
        self.touch()

    def is_step_completed(self, step: int) -> bool:
        """Check if a step is completed."""
        return step in self.completed_steps

    @property
    def highest_completed_step(self) -> int:
        """0 when nothing has been completed yet."""
        return max(self.completed_steps) if self.completed_steps else 0

    def reset_progress(self):
        """Back to step 1 with nothing completed; keeps wizard identity."""
        self.current_step = 1
        self.completed_steps = set()
        self.status = "draft"
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize context to dictionary.

        Subclasses should call super().to_dict() and add their own fields.
        """
        return {
            "wizard_id": self.wizard_id,
            "reference_number": self.reference_number,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "current_step": self.current_step,
            "user_id": self.user_id,
            "completed_steps": sorted(self.completed_steps),
        }

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WizardContext':
        """
        Restore context from dictionary.

        Subclasses must implement this method.
        """
        pass

    @classmethod
    def _restore_base_fields(cls, context: 'WizardContext', data: Dict[str, Any]):
        """Helper method to restore base fields from dictionary."""
        context.wizard_id = data.get("wizard_id", context.wizard_id)
        context.reference_number = data.get("reference_number", context.reference_number)
        context.status = data.get("status", "draft")
        context.current_step = data.get("current_step", 1)
        context.user_id = data.get("user_id")
        context.completed_steps = set(data.get("completed_steps", []))

        # Parse datetime strings
        if "created_at" in data:
            context.created_at = datetime.fromisoformat(data["created_at"])
        if "updated_at" in data:
            context.updated_at = datetime.fromisoformat(data["updated_at"])
