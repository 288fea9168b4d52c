# -*- coding: utf-8 -*-
"""
Image draft models.

An ImageDraft starts life holding a local file (bytes plus a preview
handle) and, once phase A of the upload pipeline succeeds, holds a
storage path and public URL instead. The move is one-way.
"""

import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class UploadStatus(Enum):
    """Per-draft upload status written back by the upload pipeline."""
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"


class EntityKind(Enum):
    """Entity that owns an image collection (also the storage path root)."""
    PLACE = "places"
    GOVERNATE = "governates"
    WILAYAH = "wilayahs"
    CONTENT_SECTION = "content-sections"


@dataclass
class LocalImageFile:
    """A selected file that has not been uploaded yet."""

    file_name: str
    mime_type: str
    data: bytes = b""
    preview: Optional[str] = None  # handle issued by PreviewRegistry

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        suffix = Path(self.file_name).suffix.lstrip(".").lower()
        if suffix:
            return suffix
        guessed = mimetypes.guess_extension(self.mime_type or "") or ".bin"
        return guessed.lstrip(".")

    @classmethod
    def from_path(cls, path) -> "LocalImageFile":
        """Read a file from disk."""
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(file_name=path.name, mime_type=mime_type, data=path.read_bytes())


@dataclass
class ImageDraft:
    """
    One image of a collection, before and during upload.

    Place, governate and wilayah images use alt_text/caption/is_primary;
    content-section images use the bilingual alt/caption fields and
    never carry a primary flag.
    """

    draft_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Local side (before upload)
    local_file: Optional[LocalImageFile] = None

    # Durable side (after upload)
    storage_path: Optional[str] = None
    url: Optional[str] = None

    # Metadata
    alt_text: str = ""
    caption: str = ""
    alt_text_ar: str = ""
    alt_text_en: str = ""
    caption_ar: str = ""
    caption_en: str = ""
    is_primary: bool = False
    display_order: int = 0

    # Upload state
    status: UploadStatus = UploadStatus.PENDING
    error: Optional[str] = None
    registered: bool = False  # phase B accepted this draft

    @property
    def is_local(self) -> bool:
        return self.local_file is not None and self.storage_path is None

    @property
    def is_uploaded(self) -> bool:
        return self.storage_path is not None

    @property
    def file_name(self) -> str:
        if self.local_file is not None:
            return self.local_file.file_name
        if self.storage_path:
            return self.storage_path.rsplit("/", 1)[-1]
        return self.draft_id

    def metadata_snapshot(self) -> Dict[str, Any]:
        """Copy of the user-edited metadata, taken at upload time."""
        return {
            "alt_text": self.alt_text,
            "caption": self.caption,
            "alt_text_ar": self.alt_text_ar,
            "alt_text_en": self.alt_text_en,
            "caption_ar": self.caption_ar,
            "caption_en": self.caption_en,
            "is_primary": self.is_primary,
            "display_order": self.display_order,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without binary data."""
        data = self.metadata_snapshot()
        data.update({
            "draft_id": self.draft_id,
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "url": self.url,
            "status": self.status.value,
            "error": self.error,
            "registered": self.registered,
        })
        return data


@dataclass
class UploadResult:
    """Output of phase A for one draft."""

    draft_id: str
    file_name: str
    storage_path: str
    url: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_place_image_payload(self) -> Dict[str, Any]:
        return {
            "image_url": self.url,
            "alt_text": self.metadata.get("alt_text", ""),
            "is_primary": bool(self.metadata.get("is_primary", False)),
            "display_order": int(self.metadata.get("display_order", 0)),
        }

    def to_section_image_payload(self) -> Dict[str, Any]:
        return {
            "image_url": self.url,
            "alt_text_ar": self.metadata.get("alt_text_ar", ""),
            "alt_text_en": self.metadata.get("alt_text_en", ""),
            "caption_ar": self.metadata.get("caption_ar", ""),
            "caption_en": self.metadata.get("caption_en", ""),
            "sort_order": int(self.metadata.get("display_order", 0)),
        }
