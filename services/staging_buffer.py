# -*- coding: utf-8 -*-
"""
Image Staging Buffer - holds image drafts before and during upload.

Responsibilities:
- Validate files (size, MIME type, capacity) before any network call
- Keep exactly one primary image while the collection is non-empty
- Keep display_order a contiguous 0-based sequence
- Release local preview handles on removal and on clear()

Only direct user actions (add/remove/reorder/set_primary/update_metadata)
and the upload pipeline's status write-backs (mark_*) mutate drafts.
"""

import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set

from models.image import ImageDraft, LocalImageFile, UploadStatus
from services.error_mapper import map_exception
from services.exceptions import ResourceException
from services.results import ResourceError
from utils.logger import get_logger

logger = get_logger(__name__)


class PreviewRegistry:
    """
    Live preview handles for local files (the object-URL equivalent).

    A handle stays live until revoked; anything still live after its
    draft is gone is a leak.
    """

    def __init__(self):
        self._live: Set[str] = set()

    def issue(self, local_file: LocalImageFile) -> str:
        handle = f"preview://{uuid.uuid4()}/{local_file.file_name}"
        self._live.add(handle)
        return handle

    def revoke(self, handle: Optional[str]) -> bool:
        if handle and handle in self._live:
            self._live.discard(handle)
            return True
        return False

    def is_live(self, handle: Optional[str]) -> bool:
        return handle in self._live

    @property
    def live_count(self) -> int:
        return len(self._live)


@dataclass
class StagingReport:
    """Outcome of add_files(): partial acceptance is normal."""
    accepted: List[ImageDraft] = field(default_factory=list)
    rejected: List[ResourceError] = field(default_factory=list)


class ImageStagingBuffer:
    """
    Ordered collection of image drafts for one owner.

    Place, governate and wilayah galleries track a primary (cover) image;
    content-section buffers are created with track_primary=False.
    """

    EDITABLE_FIELDS = frozenset({
        "alt_text", "caption", "alt_text_ar", "alt_text_en", "caption_ar", "caption_en",
    })

    def __init__(
        self,
        track_primary: bool = True,
        max_files: Optional[int] = None,
        max_file_size: Optional[int] = None,
        accepted_types: Optional[Sequence[str]] = None,
        previews: Optional[PreviewRegistry] = None,
        on_delete_uploaded: Optional[Callable[[str], None]] = None,
        label: str = "place"
    ):
        from app.config import Config

        self.track_primary = track_primary
        self.max_files = max_files if max_files is not None else Config.UPLOAD_MAX_FILES
        self.max_file_size = max_file_size if max_file_size is not None else Config.UPLOAD_MAX_FILE_SIZE
        self.accepted_types = tuple(accepted_types or Config.UPLOAD_ACCEPTED_TYPES)
        self.previews = previews or PreviewRegistry()
        self.on_delete_uploaded = on_delete_uploaded
        self.label = label
        self._drafts: List[ImageDraft] = []

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def drafts(self) -> List[ImageDraft]:
        """Drafts in display order (a copy of the list)."""
        return list(self._drafts)

    def __len__(self) -> int:
        return len(self._drafts)

    def __iter__(self) -> Iterator[ImageDraft]:
        return iter(list(self._drafts))

    def __contains__(self, draft_id: str) -> bool:
        return self._index_of(draft_id) is not None

    def get(self, draft_id: str) -> Optional[ImageDraft]:
        index = self._index_of(draft_id)
        return self._drafts[index] if index is not None else None

    @property
    def primary(self) -> Optional[ImageDraft]:
        """The cover image; the first draft if none is flagged."""
        if not self.track_primary or not self._drafts:
            return None
        for draft in self._drafts:
            if draft.is_primary:
                return draft
        return self._drafts[0]

    def pending_drafts(self) -> List[ImageDraft]:
        """Drafts that still need phase A (never completed ones)."""
        return [d for d in self._drafts if d.status == UploadStatus.PENDING]

    def failed_drafts(self) -> List[ImageDraft]:
        return [d for d in self._drafts if d.status == UploadStatus.ERROR]

    def to_list(self) -> List[Dict]:
        return [d.to_dict() for d in self._drafts]

    # =========================================================================
    # User actions
    # =========================================================================

    def validate_file(self, local_file: LocalImageFile):
        """
        Check one file against the size and type limits.

        Raises:
            ResourceException: the file cannot be staged
        """
        if local_file.size > self.max_file_size:
            limit_mb = round(self.max_file_size / (1024 * 1024), 1)
            raise ResourceException(
                f"File size must be less than {limit_mb:g}MB", file_name=local_file.file_name
            )
        if local_file.mime_type not in self.accepted_types:
            raise ResourceException(
                f"File type must be one of: {', '.join(self.accepted_types)}",
                file_name=local_file.file_name
            )

    def add_files(self, files: Iterable[LocalImageFile]) -> StagingReport:
        """
        Stage files; each one is accepted or rejected on its own.

        Accepted files are appended with display_order = current length.
        The first file accepted into an empty buffer becomes primary.
        """
        report = StagingReport()

        for local_file in files:
            try:
                self.validate_file(local_file)
                if len(self._drafts) >= self.max_files:
                    raise ResourceException(
                        f"Maximum {self.max_files} images allowed", file_name=local_file.file_name
                    )
            except ResourceException as e:
                logger.warning(f"[{self.label}] Rejected {local_file.file_name}: {e.message}")
                report.rejected.append(
                    ResourceError(message=map_exception(e), file_name=local_file.file_name)
                )
                continue

            local_file.preview = self.previews.issue(local_file)
            draft = ImageDraft(
                local_file=local_file,
                display_order=len(self._drafts),
                is_primary=self.track_primary and len(self._drafts) == 0,
            )
            self._drafts.append(draft)
            report.accepted.append(draft)

        if report.accepted:
            logger.debug(
                f"[{self.label}] Staged {len(report.accepted)} file(s), "
                f"{len(self._drafts)} total"
            )
        return report

    def remove(self, draft_id: str) -> ImageDraft:
        """
        Delete a draft.

        Releases its preview; an uploaded draft also has its stored object
        deleted through on_delete_uploaded. If the primary image is removed
        the new first image becomes primary.

        Raises:
            KeyError: unknown draft id
        """
        index = self._require_index(draft_id)
        draft = self._drafts.pop(index)

        self._release(draft)
        if draft.is_uploaded and self.on_delete_uploaded:
            self.on_delete_uploaded(draft.storage_path)

        if self.track_primary and draft.is_primary and self._drafts:
            self._drafts[0].is_primary = True
        self._renumber()

        logger.debug(f"[{self.label}] Removed {draft.file_name}")
        return draft

    def set_primary(self, draft_id: str):
        """Make one draft the cover image and clear the flag on the rest."""
        if not self.track_primary:
            raise ValueError(f"Buffer '{self.label}' has no primary image")
        self._require_index(draft_id)
        for draft in self._drafts:
            draft.is_primary = draft.draft_id == draft_id

    def reorder(self, from_index: int, to_index: int):
        """Move one draft and renumber display_order from 0."""
        count = len(self._drafts)
        if not (0 <= from_index < count) or not (0 <= to_index < count):
            raise IndexError(f"Reorder {from_index} -> {to_index} out of range (0-{count - 1})")
        draft = self._drafts.pop(from_index)
        self._drafts.insert(to_index, draft)
        self._renumber()

    def update_metadata(self, draft_id: str, **fields):
        """Merge alt text / caption edits; order and primary are untouched."""
        invalid = set(fields) - self.EDITABLE_FIELDS
        if invalid:
            raise ValueError(f"Not editable: {', '.join(sorted(invalid))}")
        draft = self.get(draft_id)
        if draft is None:
            raise KeyError(draft_id)
        for name, value in fields.items():
            setattr(draft, name, value or "")

    def clear(self):
        """Drop every draft and release every preview handle."""
        for draft in self._drafts:
            self._release(draft)
        released = len(self._drafts)
        self._drafts = []
        if released:
            logger.debug(f"[{self.label}] Cleared {released} draft(s)")

    def reset_failed(self) -> int:
        """User-initiated retry: failed drafts go back to pending."""
        count = 0
        for draft in self._drafts:
            if draft.status == UploadStatus.ERROR:
                draft.status = UploadStatus.PENDING
                draft.error = None
                count += 1
        return count

    # =========================================================================
    # Upload pipeline write-backs
    # Each returns False when the draft was removed meanwhile.
    # =========================================================================

    def mark_uploading(self, draft_id: str) -> bool:
        draft = self.get(draft_id)
        if draft is None:
            return False
        draft.status = UploadStatus.UPLOADING
        draft.error = None
        return True

    def mark_completed(self, draft_id: str, storage_path: str, url: str) -> bool:
        draft = self.get(draft_id)
        if draft is None:
            return False
        self._release(draft)
        draft.local_file = None
        draft.storage_path = storage_path
        draft.url = url
        draft.status = UploadStatus.COMPLETED
        draft.registered = False
        return True

    def mark_failed(self, draft_id: str, message: str) -> bool:
        draft = self.get(draft_id)
        if draft is None:
            return False
        draft.status = UploadStatus.ERROR
        draft.error = message
        return True

    def mark_registered(self, draft_id: str) -> bool:
        draft = self.get(draft_id)
        if draft is None:
            return False
        draft.registered = True
        return True

    def mark_pending(self, draft_id: str) -> bool:
        draft = self.get(draft_id)
        if draft is None:
            return False
        draft.status = UploadStatus.PENDING
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _index_of(self, draft_id: str) -> Optional[int]:
        for index, draft in enumerate(self._drafts):
            if draft.draft_id == draft_id:
                return index
        return None

    def _require_index(self, draft_id: str) -> int:
        index = self._index_of(draft_id)
        if index is None:
            raise KeyError(draft_id)
        return index

    def _renumber(self):
        for order, draft in enumerate(self._drafts):
            draft.display_order = order

    def _release(self, draft: ImageDraft):
        if draft.local_file is not None:
            self.previews.revoke(draft.local_file.preview)
            draft.local_file.preview = None
