# -*- coding: utf-8 -*-
"""
Deterministic storage paths for image collections.

    places/{place_id}/cover.jpg
    places/{place_id}/gallery/002_1f3a9c0d.jpg
    places/{place_id}/sections/{section_id}/001_77be01aa.png
    governates/{governate_id}/cover.webp

The same draft always maps to the same path, so a retried upload
overwrites its own earlier object instead of leaving an orphan.
"""

from dataclasses import dataclass
from typing import Optional

from models.image import EntityKind, ImageDraft


@dataclass(frozen=True)
class UploadScope:
    """Identity of one image collection (never mixed with another)."""

    entity_kind: EntityKind
    entity_id: str
    place_id: Optional[str] = None  # owning place of a content section

    @property
    def label(self) -> str:
        if self.entity_kind == EntityKind.CONTENT_SECTION:
            return f"section:{self.entity_id}"
        return f"{self.entity_kind.value}:{self.entity_id}"

    @property
    def has_primary(self) -> bool:
        return self.entity_kind != EntityKind.CONTENT_SECTION

    @classmethod
    def for_place(cls, place_id: str) -> "UploadScope":
        return cls(EntityKind.PLACE, place_id)

    @classmethod
    def for_section(cls, place_id: str, section_id: str) -> "UploadScope":
        return cls(EntityKind.CONTENT_SECTION, section_id, place_id=place_id)


def draft_token(draft: ImageDraft, length: int = 8) -> str:
    """Stable, collision-resistant token derived from the draft id."""
    return draft.draft_id.replace("-", "")[:length].lower()


def _extension(draft: ImageDraft) -> str:
    if draft.local_file is not None:
        return draft.local_file.extension
    if draft.storage_path and "." in draft.storage_path:
        return draft.storage_path.rsplit(".", 1)[-1]
    return "jpg"


def build_storage_path(scope: UploadScope, draft: ImageDraft) -> str:
    """
    Storage path for one draft of a collection.

    Primary image -> cover.{ext}; other images -> gallery/{NNN}_{token}.{ext}
    with NNN = display_order + 1; section images live under their place.
    """
    ext = _extension(draft)
    sequence = f"{draft.display_order + 1:03d}"
    token = draft_token(draft)

    if scope.entity_kind == EntityKind.CONTENT_SECTION:
        if not scope.place_id:
            raise ValueError("Section uploads need the owning place id")
        return (
            f"{EntityKind.PLACE.value}/{scope.place_id}/sections/"
            f"{scope.entity_id}/{sequence}_{token}.{ext}"
        )

    root = f"{scope.entity_kind.value}/{scope.entity_id}"
    if draft.is_primary:
        return f"{root}/cover.{ext}"
    return f"{root}/gallery/{sequence}_{token}.{ext}"
