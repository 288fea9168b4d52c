# -*- coding: utf-8 -*-
"""
Submission Coordinator - turns a validated draft into a place record.

    1. validate the whole document (no network on failure)
    2. POST /places (text only); failure aborts and keeps the draft,
       success is reported through on_created before any upload starts
    3. upload + register place-level images
    4. upload + register each content section's images, concurrently
    5. report success with per-file warnings for anything in 3/4 that failed
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from models.place import ContentSection, CreatedContentSection, CreatedPlace, FormDocument
from services.error_mapper import extract_field_errors, map_exception
from services.exceptions import ApiException, NetworkException
from services.results import CreationError, ImageUploadError, Ok, SubmissionOutcome, ValidationError
from services.staging_buffer import ImageStagingBuffer
from services.storage_paths import UploadScope
from services.upload_pipeline import UploadPipeline
from services.wizard.step_validator import StepValidator
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SubmissionRequest:
    """Everything one submission needs, detached from the wizard."""
    document: FormDocument
    place_images: ImageStagingBuffer
    section_images: Dict[str, ImageStagingBuffer] = field(default_factory=dict)

    def validation_record(self) -> Dict:
        record = self.document.to_dict()
        record["images"] = self.place_images.to_list()
        return record


def resolve_section_ids(local_sections: List[ContentSection],
                        created_sections: List[CreatedContentSection]) -> Dict[str, str]:
    """
    Match local section keys to server section ids.

    A local section matches a created one of the same type with the same
    sort order; otherwise the n-th local section of a type takes the n-th
    unused created section of that type.
    """
    resolved: Dict[str, str] = {}
    used = set()

    for section in local_sections:
        for created in created_sections:
            if (created.id not in used
                    and created.section_type == section.section_type
                    and created.sort_order == section.sort_order):
                resolved[section.key] = created.id
                used.add(created.id)
                break

    for section in local_sections:
        if section.key in resolved:
            continue
        same_type = sorted(
            (c for c in created_sections
             if c.section_type == section.section_type and c.id not in used),
            key=lambda c: c.sort_order
        )
        if same_type:
            resolved[section.key] = same_type[0].id
            used.add(same_type[0].id)

    return resolved


class SubmissionCoordinator:
    """Runs the submission sequence and returns a result variant."""

    def __init__(self, api_client, pipeline: UploadPipeline,
                 validator: Optional[StepValidator] = None):
        self.api = api_client
        self.pipeline = pipeline
        self.validator = validator or StepValidator()

    async def submit(self, request: SubmissionRequest,
                     created: Optional[CreatedPlace] = None,
                     on_created: Optional[Callable[[CreatedPlace], None]] = None):
        """
        Submit a draft.

        Args:
            request: Document and staged images
            created: Place from an earlier, interrupted submission; creation
                is skipped and only pending images are uploaded
            on_created: Called with the CreatedPlace as soon as POST /places
                succeeds, before any image is uploaded

        Returns:
            Ok(SubmissionOutcome), ValidationError or CreationError
        """
        if created is None:
            errors = self.validator.validate_all(request.validation_record())
            if errors:
                logger.warning(f"Submission blocked by {len(errors)} validation error(s)")
                return ValidationError(message="Please correct the highlighted fields", field_errors=errors)

            created = await self._create_place(request.document)
            if not isinstance(created, CreatedPlace):
                return created
            if on_created is not None:
                on_created(created)
        else:
            logger.info(f"Resuming image uploads for place {created.id}")

        warnings: List[ImageUploadError] = []
        warnings.extend(await self._upload_place_images(created, request.place_images))
        warnings.extend(await self._upload_section_images(created, request))

        if warnings:
            logger.warning(f"Place {created.id} created with {len(warnings)} image warning(s)")
        else:
            logger.info(f"Place {created.id} submitted")
        return Ok(SubmissionOutcome(place=created, warnings=warnings))

    async def _create_place(self, document: FormDocument):
        """POST /places; returns CreatedPlace or CreationError."""
        try:
            data = await asyncio.to_thread(self.api.create_place, document.to_dict())
            return CreatedPlace.from_dict(data)
        except ApiException as e:
            logger.error(f"Place creation failed: {e}")
            return CreationError(
                message=map_exception(e, context="create_place"),
                status_code=e.status_code,
                field_errors=extract_field_errors(e.response_data) if e.status_code == 400 else {}
            )
        except NetworkException as e:
            logger.error(f"Place creation failed: {e}")
            return CreationError(message=map_exception(e, context="create_place"))
        except ValueError as e:
            logger.error(f"Place creation returned an unusable response: {e}")
            return CreationError(message=str(e))

    async def _upload_place_images(self, place: CreatedPlace,
                                   buffer: ImageStagingBuffer) -> List[ImageUploadError]:
        if len(buffer) == 0:
            return []
        scope = UploadScope.for_place(place.id)
        try:
            return await self.pipeline.upload_collection(scope, buffer)
        except Exception as e:
            logger.error(f"Place {place.id} image upload crashed: {e}")
            return self._crash_warnings(buffer, scope.label)

    async def _upload_section_images(self, place: CreatedPlace,
                                     request: SubmissionRequest) -> List[ImageUploadError]:
        sections = [
            s for s in request.document.content_sections
            if len(request.section_images.get(s.key) or []) > 0
        ]
        if not sections:
            return []

        section_ids = resolve_section_ids(request.document.content_sections, place.content_sections)
        warnings: List[ImageUploadError] = []
        jobs = []
        job_sections = []

        for section in sections:
            buffer = request.section_images[section.key]
            section_id = section_ids.get(section.key)
            if section_id is None:
                logger.warning(f"No server section matches {section.section_type} #{section.sort_order}")
                warnings.extend(
                    ImageUploadError(
                        message=f"Could not attach {draft.file_name}: section not found",
                        file_name=draft.file_name,
                        collection=f"section:{section.key}",
                        phase="resolve",
                        draft_id=draft.draft_id
                    )
                    for draft in buffer.drafts
                )
                continue
            jobs.append(self.pipeline.upload_collection(
                UploadScope.for_section(place.id, section_id), buffer
            ))
            job_sections.append((section, buffer))

        outcomes = await asyncio.gather(*jobs, return_exceptions=True)
        for (section, buffer), outcome in zip(job_sections, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    continue
                logger.error(f"Section {section.key} upload crashed: {outcome}")
                warnings.extend(self._crash_warnings(buffer, f"section:{section.key}"))
            else:
                warnings.extend(outcome)
        return warnings

    @staticmethod
    def _crash_warnings(buffer: ImageStagingBuffer, collection: str) -> List[ImageUploadError]:
        """One upload warning per draft that did not reach storage."""
        return [
            ImageUploadError(
                message=f"Failed to upload {draft.file_name}",
                file_name=draft.file_name,
                collection=collection,
                phase="upload",
                draft_id=draft.draft_id
            )
            for draft in buffer.drafts if not draft.is_uploaded
        ]
