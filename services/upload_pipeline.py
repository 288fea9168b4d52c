# -*- coding: utf-8 -*-
"""
Upload Pipeline - two-phase image upload for one collection at a time.

Phase A: upload every pending draft's binary to object storage
         (concurrently; one failure never stops the others).
Phase B: register all phase-A successes with the metadata API in one
         batch request, once every phase-A attempt has resolved.

Usage:
    pipeline = UploadPipeline(storage, api_client)
    pipeline.add_progress_listener(lambda p: print(p.percentage))
    errors = await pipeline.upload_collection(UploadScope.for_place(place_id), buffer)
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from models.image import EntityKind, ImageDraft, UploadResult, UploadStatus
from services.error_mapper import map_exception
from services.exceptions import ApiException, NetworkException, StorageException
from services.results import ImageUploadError
from services.staging_buffer import ImageStagingBuffer
from services.storage_paths import UploadScope, build_storage_path
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BatchProgress:
    """Aggregated phase-A progress of one collection."""

    collection: str
    statuses: Dict[str, UploadStatus] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.statuses)

    @property
    def completed(self) -> int:
        return sum(1 for s in self.statuses.values() if s == UploadStatus.COMPLETED)

    @property
    def failed(self) -> int:
        return sum(1 for s in self.statuses.values() if s == UploadStatus.ERROR)

    @property
    def resolved(self) -> int:
        return self.completed + self.failed

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 100
        return int(self.resolved * 100 / self.total)

    @property
    def is_done(self) -> bool:
        return self.resolved == self.total


class UploadPipeline:
    """Uploads and registers image collections; holds no draft state of its own."""

    def __init__(self, storage, api_client):
        self.storage = storage
        self.api = api_client
        self._tasks: Dict[str, asyncio.Task] = {}
        self._progress_listeners: List[Callable[[BatchProgress], None]] = []

    # ==================== Observers ====================

    def add_progress_listener(self, callback: Callable[[BatchProgress], None]):
        self._progress_listeners.append(callback)

    def _notify(self, progress: BatchProgress):
        for callback in self._progress_listeners:
            callback(progress)

    # ==================== Control ====================

    @property
    def active_uploads(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def cancel(self) -> int:
        """Cancel outstanding uploads; their drafts go back to pending."""
        cancelled = 0
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
                cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} upload(s)")
        return cancelled

    @staticmethod
    def retry_failed(buffer: ImageStagingBuffer) -> int:
        """Put failed drafts back to pending for the next upload_collection()."""
        count = buffer.reset_failed()
        if count:
            logger.info(f"[{buffer.label}] {count} failed draft(s) queued for retry")
        return count

    # ==================== Upload ====================

    async def upload_collection(self, scope: UploadScope,
                                buffer: ImageStagingBuffer) -> List[ImageUploadError]:
        """
        Run phase A then phase B for one collection.

        Completed drafts are not uploaded again; completed drafts whose
        registration failed earlier are registered again.

        Returns:
            Per-file errors (empty when every image landed)
        """
        pending = buffer.pending_drafts()
        progress = BatchProgress(
            collection=scope.label,
            statuses={d.draft_id: d.status for d in pending}
        )
        logger.info(f"[{scope.label}] Phase A: {len(pending)} pending of {len(buffer)} draft(s)")

        errors: List[ImageUploadError] = []
        uploaded: List[UploadResult] = []

        tasks = []
        for draft in pending:
            task = asyncio.ensure_future(self._upload_draft(scope, buffer, draft, progress))
            self._tasks[draft.draft_id] = task
            tasks.append((draft, task))

        outcomes = await asyncio.gather(*(t for _, t in tasks), return_exceptions=True)

        for (draft, task), outcome in zip(tasks, outcomes):
            if self._tasks.get(draft.draft_id) is task:
                del self._tasks[draft.draft_id]

            if isinstance(outcome, UploadResult):
                uploaded.append(outcome)
            elif isinstance(outcome, ImageUploadError):
                errors.append(outcome)
            elif isinstance(outcome, asyncio.CancelledError):
                buffer.mark_pending(draft.draft_id)
            elif isinstance(outcome, Exception):
                message = f"Failed to upload {draft.file_name}"
                logger.error(f"[{scope.label}] {message}: {outcome}")
                if buffer.mark_failed(draft.draft_id, message):
                    errors.append(self._error(scope, draft, message, "upload"))

        # Earlier uploads that never got registered
        uploaded_ids = {r.draft_id for r in uploaded}
        for draft in buffer.drafts:
            if (draft.status == UploadStatus.COMPLETED
                    and draft.draft_id not in uploaded_ids
                    and not draft.registered):
                uploaded.append(self._result_from_draft(draft))

        if uploaded:
            errors.extend(await self._register(scope, buffer, uploaded))

        logger.info(
            f"[{scope.label}] Done: {len(uploaded)} uploaded, {len(errors)} error(s)"
        )
        return errors

    async def _upload_draft(self, scope: UploadScope, buffer: ImageStagingBuffer,
                            draft: ImageDraft, progress: BatchProgress):
        """Phase A for one draft. Returns UploadResult, ImageUploadError or None."""
        local_file = draft.local_file
        if local_file is None:
            message = f"No file data for {draft.file_name}"
            buffer.mark_failed(draft.draft_id, message)
            return self._error(scope, draft, message, "upload")

        file_name = local_file.file_name
        path = build_storage_path(scope, draft)
        metadata = draft.metadata_snapshot()

        buffer.mark_uploading(draft.draft_id)
        progress.statuses[draft.draft_id] = UploadStatus.UPLOADING

        try:
            stored = await asyncio.to_thread(
                self.storage.upload, path, local_file.data, local_file.mime_type
            )
        except asyncio.CancelledError:
            buffer.mark_pending(draft.draft_id)
            progress.statuses.pop(draft.draft_id, None)
            raise
        except StorageException as e:
            logger.warning(f"[{scope.label}] Failed to upload {file_name}: {e.message}")
            message = f"{file_name}: {map_exception(e)}"
            progress.statuses[draft.draft_id] = UploadStatus.ERROR
            self._notify(progress)
            if not buffer.mark_failed(draft.draft_id, message):
                return None
            return self._error(scope, draft, message, "upload", file_name=file_name)

        if not buffer.mark_completed(draft.draft_id, stored.path, stored.url):
            # Removed while uploading
            logger.info(f"[{scope.label}] {file_name} removed during upload, discarding")
            progress.statuses.pop(draft.draft_id, None)
            self._notify(progress)
            await self._delete_quietly(stored.path)
            return None

        progress.statuses[draft.draft_id] = UploadStatus.COMPLETED
        self._notify(progress)
        return UploadResult(
            draft_id=draft.draft_id,
            file_name=file_name,
            storage_path=stored.path,
            url=stored.url,
            metadata=metadata
        )

    async def _register(self, scope: UploadScope, buffer: ImageStagingBuffer,
                        uploaded: List[UploadResult]) -> List[ImageUploadError]:
        """Phase B: one batch registration for the whole collection."""
        if scope.entity_kind == EntityKind.CONTENT_SECTION:
            payload = [r.to_section_image_payload() for r in uploaded]
        else:
            payload = [r.to_place_image_payload() for r in uploaded]

        logger.info(f"[{scope.label}] Phase B: registering {len(payload)} image(s)")
        try:
            await asyncio.to_thread(
                self.api.register_images, scope.entity_kind, scope.entity_id, payload
            )
        except (ApiException, NetworkException) as e:
            logger.error(f"[{scope.label}] Registration failed: {e}")
            user_message = map_exception(e, context="register_images")
            return [
                ImageUploadError(
                    message=f"{r.file_name}: {user_message}",
                    file_name=r.file_name,
                    collection=scope.label,
                    phase="register",
                    draft_id=r.draft_id
                )
                for r in uploaded
            ]

        for result in uploaded:
            buffer.mark_registered(result.draft_id)
        return []

    async def discard(self, path: str):
        """Best-effort delete of an uploaded object (draft removed by the user)."""
        await self._delete_quietly(path)

    async def _delete_quietly(self, path: str):
        try:
            await asyncio.to_thread(self.storage.delete, path)
        except StorageException as e:
            logger.warning(f"Could not delete orphaned object {path}: {e.message}")

    @staticmethod
    def _result_from_draft(draft: ImageDraft) -> UploadResult:
        return UploadResult(
            draft_id=draft.draft_id,
            file_name=draft.file_name,
            storage_path=draft.storage_path,
            url=draft.url,
            metadata=draft.metadata_snapshot()
        )

    @staticmethod
    def _error(scope: UploadScope, draft: ImageDraft, message: str, phase: str,
               file_name: Optional[str] = None) -> ImageUploadError:
        return ImageUploadError(
            message=message,
            file_name=file_name or draft.file_name,
            collection=scope.label,
            phase=phase,
            draft_id=draft.draft_id
        )
