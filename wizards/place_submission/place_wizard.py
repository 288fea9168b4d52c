# -*- coding: utf-8 -*-
"""
Place Submission Wizard.

Steps:
1. Category (parent + child categories)
2. Basic info (bilingual name and subtitle)
3. Location (governate, wilayah, coordinates)
4. Description and content sections
5. Images
6. Properties and contact
7. Review
8. Success (entered only through submit())

Usage:
    wizard = PlaceSubmissionWizard(api_client, storage)
    await wizard.select_parent_category(parent_id)
    wizard.update({"category_ids": [child_id]})
    errors = wizard.advance()
    ...
    result = await wizard.submit()
"""

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from app.config import Config, WizardSteps
from models.image import LocalImageFile
from models.place import ContentSection, SectionType
from services.dependency_resolver import DependencyResolver
from services.exceptions import StorageException
from services.results import CreationError, Ok, ValidationError
from services.staging_buffer import ImageStagingBuffer, PreviewRegistry, StagingReport
from services.submission_coordinator import SubmissionCoordinator, SubmissionRequest
from services.upload_pipeline import UploadPipeline
from services.validation import ValidationFactory
from services.wizard import StepValidator
from utils.logger import get_logger
from wizards.framework import StepNavigator

from .place_context import PlaceSubmissionContext

logger = get_logger(__name__)


class PlaceSubmissionWizard:
    """
    Drives one place draft from category selection to a created place.

    Args:
        api_client: PlacesApiClient (or anything with the same methods)
        storage: ObjectStorageClient (or anything with upload/delete)
        config: Config instance; limits below override it
    """

    SECTION_FIELDS = ("section_type", "title_ar", "title_en", "content_ar", "content_en")

    def __init__(
        self,
        api_client,
        storage,
        config: Optional[Config] = None,
        max_files: Optional[int] = None,
        max_file_size: Optional[int] = None,
        accepted_types: Optional[Sequence[str]] = None,
        min_images: int = 1
    ):
        self.config = config or Config()
        self.api = api_client
        self.storage = storage

        self.max_files = max_files if max_files is not None else self.config.UPLOAD_MAX_FILES
        self.max_file_size = (
            max_file_size if max_file_size is not None else self.config.UPLOAD_MAX_FILE_SIZE
        )
        self.accepted_types = tuple(accepted_types or self.config.UPLOAD_ACCEPTED_TYPES)

        self.previews = PreviewRegistry()
        self.context = PlaceSubmissionContext(
            buffer_factory=self._create_buffer, previews=self.previews
        )
        self.validator = StepValidator(ValidationFactory(min_images=min_images))
        self.navigator = StepNavigator(
            self.context, WizardSteps.SUCCESS, self._validate_step
        )
        self.navigator.on_step_changed(lambda old, new: self._set_errors({}))

        self.resolver = DependencyResolver(api_client)
        self.pipeline = UploadPipeline(storage, api_client)
        self.coordinator = SubmissionCoordinator(api_client, self.pipeline, self.validator)

        self._submitting = False
        self._background: set = set()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def document(self):
        return self.context.document

    @property
    def current_step(self) -> int:
        return self.context.current_step

    @property
    def completed_steps(self) -> set:
        return set(self.context.completed_steps)

    @property
    def place_images(self) -> ImageStagingBuffer:
        return self.context.place_images

    @property
    def created_place(self):
        return self.context.created_place

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def is_complete(self) -> bool:
        return self.current_step == WizardSteps.SUCCESS

    # =========================================================================
    # Observers
    # =========================================================================

    def on_step_changed(self, callback: Callable[[int, int], None]):
        self.navigator.on_step_changed(callback)

    def on_validation_failed(self, callback: Callable[[Dict[str, str]], None]):
        self.navigator.on_validation_failed(callback)

    def on_upload_progress(self, callback):
        self.pipeline.add_progress_listener(callback)

    # =========================================================================
    # Navigation
    # =========================================================================

    def _validate_step(self, step: int) -> Dict[str, str]:
        return self.validator.validate_step(step, self.context.validation_record())

    def validate_current_step(self) -> Dict[str, str]:
        """Errors of the current step without navigating."""
        return self._validate_step(self.current_step)

    def advance(self) -> Dict[str, str]:
        """
        Validate the current step and move to the next one.

        On the review step nothing moves: the complete document is
        validated and its errors returned (submit() is separate).
        """
        if self._submitting:
            return {}
        errors = self.navigator.next_step()
        self._set_errors(errors)
        return errors

    @property
    def validation_errors(self) -> Dict[str, str]:
        """Errors of the last failed advance() or submit()."""
        return dict(self.context.validation_errors)

    def _set_errors(self, errors: Dict[str, str]):
        self.context.validation_errors = dict(errors)

    def retreat(self) -> bool:
        if self._submitting:
            return False
        return self.navigator.previous_step()

    def jump_to(self, step: int) -> bool:
        if self._submitting:
            return False
        return self.navigator.goto_step(step)

    # =========================================================================
    # Form data
    # =========================================================================

    def update(self, partial: Dict[str, Any]):
        """Merge a partial document; unknown keys raise ValueError."""
        self.document.merge(partial)
        self.context.touch()

    async def load_reference_data(self):
        """Primary categories and governates."""
        await self.resolver.load_roots()
        return {
            "primary_categories": self.resolver.primary_categories.displayed,
            "governates": self.resolver.governates.displayed,
        }

    async def select_parent_category(self, parent_id: Optional[str]):
        """
        Select the parent category and refresh its child lists.

        Child categories and properties no longer offered under the new
        parent are dropped from the document.
        """
        self.document.parent_category_id = parent_id
        self.context.touch()

        await asyncio.gather(
            self.resolver.categories.select_parent(parent_id),
            self.resolver.properties.select_parent(parent_id),
        )

        # Another parent may have been picked while loading
        if self.document.parent_category_id != parent_id:
            return self.resolver.categories.displayed

        valid_categories = {c.id for c in self.resolver.categories.displayed}
        valid_properties = {p.id for p in self.resolver.properties.displayed}
        self.document.category_ids = [c for c in self.document.category_ids if c in valid_categories]
        self.document.property_ids = [p for p in self.document.property_ids if p in valid_properties]
        return self.resolver.categories.displayed

    async def select_governate(self, governate_id: Optional[str]):
        """Select a governate; a wilayah outside it is cleared."""
        self.document.governate_id = governate_id
        self.context.touch()

        await self.resolver.wilayahs.select_parent(governate_id)

        if self.document.governate_id == governate_id:
            valid = {w.id for w in self.resolver.wilayahs.displayed}
            if self.document.wilayah_id not in valid:
                self.document.wilayah_id = None
        return self.resolver.wilayahs.displayed

    # =========================================================================
    # Place images
    # =========================================================================

    def _create_buffer(self, track_primary: bool, label: str) -> ImageStagingBuffer:
        return ImageStagingBuffer(
            track_primary=track_primary,
            max_files=self.max_files,
            max_file_size=self.max_file_size,
            accepted_types=self.accepted_types,
            previews=self.previews,
            on_delete_uploaded=self._discard_uploaded,
            label=label
        )

    def add_images(self, files: Iterable[LocalImageFile]) -> StagingReport:
        return self.place_images.add_files(files)

    def remove_image(self, draft_id: str):
        return self.place_images.remove(draft_id)

    def set_primary_image(self, draft_id: str):
        self.place_images.set_primary(draft_id)

    def reorder_images(self, from_index: int, to_index: int):
        self.place_images.reorder(from_index, to_index)

    def update_image_metadata(self, draft_id: str, **fields):
        self.place_images.update_metadata(draft_id, **fields)

    def _discard_uploaded(self, path: str):
        """Delete the stored object of an uploaded draft the user removed."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(self.pipeline.discard(path))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            return

        try:
            self.storage.delete(path)
        except StorageException as e:
            logger.warning(f"Could not delete {path}: {e.message}")

    # =========================================================================
    # Content sections
    # =========================================================================

    def add_content_section(self, section_type: str = SectionType.OTHER.value,
                            **fields) -> ContentSection:
        """Append a section; sort_order follows its position."""
        self._check_section_fields(fields)
        section = ContentSection(section_type=section_type, **fields)
        return self.context.add_section(section)

    def update_content_section(self, key: str, **fields) -> ContentSection:
        self._check_section_fields(fields)
        section = self.document.get_section(key)
        if section is None:
            raise KeyError(key)
        for name, value in fields.items():
            setattr(section, name, value)
        self.context.touch()
        return section

    def remove_content_section(self, key: str) -> ContentSection:
        """Remove a section and release its staged previews."""
        return self.context.remove_section(key)

    def section_images(self, key: str) -> ImageStagingBuffer:
        return self.context.section_buffer(key)

    def add_section_images(self, key: str, files: Iterable[LocalImageFile]) -> StagingReport:
        return self.context.section_buffer(key).add_files(files)

    def _check_section_fields(self, fields: Dict[str, Any]):
        invalid = set(fields) - set(self.SECTION_FIELDS)
        if invalid:
            raise ValueError(f"Unknown section fields: {', '.join(sorted(invalid))}")

    # =========================================================================
    # Reset / submit
    # =========================================================================

    def reset(self):
        """Back to step 1 with an empty document; all previews released."""
        if self._submitting:
            logger.warning("Reset ignored while submitting")
            return
        self.context.clear()
        self.navigator.reset()
        logger.info("Wizard reset")

    async def submit(self):
        """
        Submit the draft from the review step.

        The created place is recorded as soon as the server returns it, so
        a submission interrupted during the uploads is resumed by the next
        submit() without posting the place again.

        Returns:
            Ok(SubmissionOutcome), ValidationError or CreationError
        """
        if self._submitting:
            return CreationError(message="A submission is already in progress")
        if self.context.status == "completed":
            return CreationError(message="This place has already been submitted")
        if self.current_step != WizardSteps.REVIEW:
            return ValidationError(
                message="Submit is only available from the review step",
                field_errors={}
            )

        self._submitting = True
        self.context.status = "submitting"
        try:
            request = SubmissionRequest(
                document=self.document,
                place_images=self.context.place_images,
                section_images=dict(self.context.section_images),
            )
            result = await self.coordinator.submit(
                request,
                created=self.context.created_place,
                on_created=self._record_created_place
            )
        finally:
            self._submitting = False
            if self.context.status == "submitting":
                self.context.status = "in_progress"

        if isinstance(result, Ok):
            self.context.created_place = result.value.place
            self.context.warnings = list(result.value.warnings)
            self.context.status = "completed"
            self.navigator.finish()
        elif isinstance(result, ValidationError):
            self._set_errors(result.field_errors)
            self.navigator.emit_validation_failed(result.field_errors)
        return result

    def _record_created_place(self, place):
        self.context.created_place = place
        self.context.touch()
        logger.info(f"Place {place.id} created ({self.context.reference_number})")

    def to_dict(self) -> Dict[str, Any]:
        """Diagnostic snapshot (no binary data)."""
        data = self.context.to_dict()
        data["step_title"] = WizardSteps.get_title(self.current_step)
        data["submitting"] = self._submitting
        return data

    def pending_errors(self) -> List[Any]:
        """Dependency error flags of the lists on display."""
        return self.resolver.current_errors()
