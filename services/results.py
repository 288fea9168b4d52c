# -*- coding: utf-8 -*-
"""
Result variants returned across the submission flow.

Every call site that drives a submission receives exactly one of:
Ok, ValidationError, DependencyError, CreationError, ImageUploadError
(plus ResourceError for files rejected while staging).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class Ok:
    """Successful outcome carrying a value."""
    value: Any = None

    ok = True


@dataclass
class Failure:
    """Base of all failure variants."""
    message: str = ""

    ok = False

    @property
    def field(self) -> Optional[str]:
        return None


@dataclass
class ValidationError(Failure):
    """Local validation failed; recoverable by editing."""
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def field(self) -> Optional[str]:
        return next(iter(self.field_errors), None)


@dataclass
class DependencyError(Failure):
    """A cascade fetch failed; the list degrades to empty and can be retried."""
    kind: str = ""
    parent_id: Optional[str] = None


@dataclass
class CreationError(Failure):
    """The place record could not be created; the draft is kept for retry."""
    status_code: Optional[int] = None
    field_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def field(self) -> Optional[str]:
        return next(iter(self.field_errors), None)


@dataclass
class ImageUploadError(Failure):
    """
    One image failed to upload or register.

    phase is "upload" (object storage), "register" (metadata API) or
    "resolve" (no server section matched a staged section).
    """
    file_name: str = ""
    collection: str = ""
    phase: str = "upload"
    draft_id: Optional[str] = None


@dataclass
class ResourceError(Failure):
    """A file rejected at staging time, before any network call."""
    file_name: str = ""

    @property
    def field(self) -> Optional[str]:
        return "images"


@dataclass
class SubmissionOutcome:
    """Value of a successful submission."""
    place: Any
    warnings: List[ImageUploadError] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


Result = Union[Ok, ValidationError, DependencyError, CreationError, ImageUploadError]
