# -*- coding: utf-8 -*-
"""
Place Context - Manages state and data for the place submission wizard.

This context extends WizardContext with place-specific data:
- The form document (all text fields and selections)
- The place-level image staging buffer
- One staging buffer per content section
- The created place once submission succeeded
"""

from typing import Any, Callable, Dict, List, Optional

from models.place import ContentSection, CreatedPlace, FormDocument
from services.staging_buffer import ImageStagingBuffer, PreviewRegistry
from utils.logger import get_logger
from wizards.framework import WizardContext

logger = get_logger(__name__)


class PlaceSubmissionContext(WizardContext):
    """Context for the place submission wizard."""

    def __init__(self, buffer_factory: Optional[Callable[..., ImageStagingBuffer]] = None,
                 previews: Optional[PreviewRegistry] = None):
        """
        Args:
            buffer_factory: Builds a staging buffer from (track_primary, label);
                defaults to ImageStagingBuffer with Config limits
            previews: Preview registry shared by every buffer of this wizard
        """
        super().__init__()
        self.previews = previews or PreviewRegistry()
        self._buffer_factory = buffer_factory or self._default_buffer

        self.document = FormDocument()
        self.place_images: ImageStagingBuffer = self._buffer_factory(True, "place")
        self.section_images: Dict[str, ImageStagingBuffer] = {}

        # Errors of the last failed advance() or submit(); cleared on success
        self.validation_errors: Dict[str, str] = {}

        # Submission result
        self.created_place: Optional[CreatedPlace] = None
        self.warnings: List[Any] = []

    def _get_reference_prefix(self) -> str:
        """Override to use place-specific prefix."""
        return "PLC"

    def _default_buffer(self, track_primary: bool, label: str) -> ImageStagingBuffer:
        return ImageStagingBuffer(track_primary=track_primary, previews=self.previews, label=label)

    # =========================================================================
    # Content sections
    # =========================================================================

    def section_buffer(self, key: str) -> ImageStagingBuffer:
        """Staging buffer of a content section (created on first use)."""
        if self.document.get_section(key) is None:
            raise KeyError(key)
        buffer = self.section_images.get(key)
        if buffer is None:
            buffer = self._buffer_factory(False, f"section:{key}")
            self.section_images[key] = buffer
        return buffer

    def add_section(self, section: ContentSection) -> ContentSection:
        section.sort_order = len(self.document.content_sections)
        self.document.content_sections.append(section)
        self.touch()
        return section

    def remove_section(self, key: str) -> ContentSection:
        section = self.document.get_section(key)
        if section is None:
            raise KeyError(key)
        self.document.content_sections.remove(section)
        for order, remaining in enumerate(self.document.content_sections):
            remaining.sort_order = order

        buffer = self.section_images.pop(key, None)
        if buffer is not None:
            buffer.clear()
        self.touch()
        return section

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def validation_record(self) -> Dict[str, Any]:
        """Form document plus staged place images, as the validators expect."""
        record = self.document.to_dict()
        record["images"] = self.place_images.to_list()
        return record

    def clear(self):
        """Empty document and release every preview (place and sections)."""
        self.place_images.clear()
        for buffer in self.section_images.values():
            buffer.clear()
        self.section_images = {}
        self.document = FormDocument()
        self.created_place = None
        self.validation_errors = {}
        self.warnings = []
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize context to dictionary (no binary data)."""
        base_data = super().to_dict()

        place_data = {
            "document": self.document.to_dict(),
            "place_images": self.place_images.to_list(),
            "section_images": {
                key: buffer.to_list() for key, buffer in self.section_images.items()
            },
            "created_place_id": self.created_place.id if self.created_place else None,
            "validation_errors": dict(self.validation_errors),
            "warnings": [w.message for w in self.warnings],
        }

        base_data.update(place_data)
        return base_data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlaceSubmissionContext':
        """Restore context from dictionary (staged images are not restored)."""
        ctx = cls()
        cls._restore_base_fields(ctx, data)
        ctx.document = FormDocument.from_dict(data.get("document") or {})
        if data.get("place_images") or data.get("section_images"):
            logger.warning("Staged images are not restored from a snapshot")
        return ctx
