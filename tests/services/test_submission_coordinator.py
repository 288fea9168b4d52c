# -*- coding: utf-8 -*-
"""
Tests for the Submission Coordinator.

Tests cover:
- Validation before any network call
- Creation failures (auth, 400 field errors, network)
- Place and section image uploads after creation
- Created place handed over before uploads; resumed submissions
- Section id resolution
"""

import asyncio

import pytest

from models.place import ContentSection, CreatedContentSection, FormDocument
from services.exceptions import ApiException, AuthenticationException, NetworkException
from services.results import CreationError, ImageUploadError, Ok, ValidationError
from services.staging_buffer import ImageStagingBuffer
from services.submission_coordinator import (
    SubmissionCoordinator,
    SubmissionRequest,
    resolve_section_ids,
)
from services.upload_pipeline import UploadPipeline


@pytest.fixture
def coordinator(api, storage):
    return SubmissionCoordinator(api, UploadPipeline(storage, api))


@pytest.fixture
def request_factory(wadi_shab, make_image):
    def _build(document=None, images=("a.jpg", "b.jpg"), **section_images):
        place_images = ImageStagingBuffer()
        place_images.add_files([make_image(name, data=name.encode()) for name in images])
        return SubmissionRequest(
            document=document or FormDocument.from_dict(wadi_shab),
            place_images=place_images,
            section_images=section_images,
        )
    return _build


class TestValidation:
    """Test invalid drafts never reach the network."""

    def test_invalid_document(self, coordinator, request_factory, api, wadi_shab):
        wadi_shab["name_en"] = "W"
        result = asyncio.run(coordinator.submit(request_factory(FormDocument.from_dict(wadi_shab))))

        assert isinstance(result, ValidationError)
        assert result.field_errors["name_en"] == "English name must be at least 2 characters"
        assert api.calls == []

    def test_missing_images(self, coordinator, request_factory, api):
        result = asyncio.run(coordinator.submit(request_factory(images=())))

        assert isinstance(result, ValidationError)
        assert result.field_errors == {"images": "Please add at least one image"}
        assert api.calls == []


class TestCreation:
    """Test place creation failures abort the submission."""

    def test_auth_failure(self, coordinator, request_factory, api, storage):
        api.create_error = AuthenticationException("Unauthorized", status_code=401)

        result = asyncio.run(coordinator.submit(request_factory()))

        assert isinstance(result, CreationError)
        assert result.status_code == 401
        assert result.message == "Your session has expired. Please sign in again."
        assert storage.uploads == []

    def test_field_errors_from_400(self, coordinator, request_factory, api):
        api.create_error = ApiException(
            "Validation failed", status_code=400,
            response_data={"success": False, "errors": {"name_en": ["already taken"]}}
        )

        result = asyncio.run(coordinator.submit(request_factory()))

        assert isinstance(result, CreationError)
        assert result.field_errors == {"name_en": "already taken"}
        assert result.field == "name_en"

    def test_network_failure(self, coordinator, request_factory, api):
        api.create_error = NetworkException("connection refused")

        result = asyncio.run(coordinator.submit(request_factory()))

        assert isinstance(result, CreationError)
        assert result.status_code is None


class TestImages:
    """Test uploads after a successful creation."""

    def test_place_images_registered(self, coordinator, request_factory, api, ref):
        result = asyncio.run(coordinator.submit(request_factory()))

        assert isinstance(result, Ok)
        assert result.value.place.id == ref.PLACE_ID
        assert result.value.has_warnings is False
        assert len(api.registrations) == 1
        assert [i["is_primary"] for i in api.registrations[0][2]] == [True, False]

    def test_partial_upload_is_warning(self, coordinator, request_factory, storage, api):
        """Test 3 images with 1 phase-A failure: 2 registered, 1 warning."""
        storage.fail_data.add(b"b.jpg")

        result = asyncio.run(coordinator.submit(request_factory(images=("a.jpg", "b.jpg", "c.jpg"))))

        assert isinstance(result, Ok)
        assert len(result.value.warnings) == 1
        warning = result.value.warnings[0]
        assert isinstance(warning, ImageUploadError)
        assert warning.file_name == "b.jpg"
        assert len(api.registrations[0][2]) == 2

    def test_sections_independent(self, coordinator, request_factory, wadi_shab, storage, api,
                                  make_image):
        """Test one section's failure does not affect another."""
        document = FormDocument.from_dict(wadi_shab)
        history = ContentSection(section_type="history", title_ar="تاريخ", title_en="History", sort_order=0)
        tips = ContentSection(section_type="tips", title_ar="نصائح", title_en="Tips", sort_order=1)
        document.content_sections = [history, tips]

        history_images = ImageStagingBuffer(track_primary=False)
        history_images.add_files([make_image("fort.jpg", data=b"fort")])
        tips_images = ImageStagingBuffer(track_primary=False)
        tips_images.add_files([make_image("shoes.jpg", data=b"shoes")])
        storage.fail_data.add(b"shoes")

        request = request_factory(document)
        request.section_images = {history.key: history_images, tips.key: tips_images}

        result = asyncio.run(coordinator.submit(request))

        assert isinstance(result, Ok)
        assert [w.file_name for w in result.value.warnings] == ["shoes.jpg"]
        section_registrations = [r for r in api.registrations if r[1] == "section-0"]
        assert len(section_registrations) == 1
        assert history_images.drafts[0].storage_path.startswith("places/")

    def test_unresolvable_section_is_warning(self, api, storage, request_factory, wadi_shab,
                                             make_image):
        document = FormDocument.from_dict(wadi_shab)
        section = ContentSection(section_type="history", title_ar="تاريخ", title_en="History")
        document.content_sections = [section]
        images = ImageStagingBuffer(track_primary=False)
        images.add_files([make_image("fort.jpg")])

        original = api.create_place

        def create_without_sections(place_data):
            created = original(place_data)
            created["content_sections"] = []
            return created

        api.create_place = create_without_sections
        coordinator = SubmissionCoordinator(api, UploadPipeline(storage, api))
        request = request_factory(document)
        request.section_images = {section.key: images}

        result = asyncio.run(coordinator.submit(request))

        assert isinstance(result, Ok)
        assert [(w.file_name, w.phase) for w in result.value.warnings] == [("fort.jpg", "resolve")]


class TestCreatedPlaceHandoff:
    """Test the created place is handed over before uploads and never posted twice."""

    def test_on_created_runs_before_uploads(self, coordinator, request_factory, storage, ref):
        seen = []

        asyncio.run(coordinator.submit(
            request_factory(),
            on_created=lambda place: seen.append((place.id, len(storage.uploads)))
        ))

        assert seen == [(ref.PLACE_ID, 0)]

    def test_resume_skips_creation(self, coordinator, request_factory, api):
        first = asyncio.run(coordinator.submit(request_factory()))

        result = asyncio.run(coordinator.submit(request_factory(), created=first.value.place))

        assert isinstance(result, Ok)
        assert [c for c in api.calls if c[0] == "create_place"] == [("create_place", None)]
        assert len(api.registrations) == 2

    def test_upload_crash_keeps_place(self, coordinator, request_factory, ref):
        async def crash(scope, buffer):
            raise RuntimeError("disk full")

        coordinator.pipeline.upload_collection = crash
        seen = []

        result = asyncio.run(coordinator.submit(request_factory(), on_created=seen.append))

        assert isinstance(result, Ok)
        assert seen[0].id == ref.PLACE_ID
        assert [(w.file_name, w.phase) for w in result.value.warnings] == [
            ("a.jpg", "upload"), ("b.jpg", "upload")
        ]


class TestSectionResolution:
    """Test matching local sections to server ids."""

    def test_match_by_type_and_sort_order(self):
        local = [
            ContentSection(key="k1", section_type="history", sort_order=0),
            ContentSection(key="k2", section_type="tips", sort_order=1),
        ]
        created = [
            CreatedContentSection(id="s-tips", section_type="tips", sort_order=1),
            CreatedContentSection(id="s-history", section_type="history", sort_order=0),
        ]

        assert resolve_section_ids(local, created) == {"k1": "s-history", "k2": "s-tips"}

    def test_fallback_by_type_position(self):
        """Test renumbered sort orders still match by type occurrence."""
        local = [
            ContentSection(key="k1", section_type="tips", sort_order=0),
            ContentSection(key="k2", section_type="tips", sort_order=1),
        ]
        created = [
            CreatedContentSection(id="s-a", section_type="tips", sort_order=5),
            CreatedContentSection(id="s-b", section_type="tips", sort_order=6),
        ]

        assert resolve_section_ids(local, created) == {"k1": "s-a", "k2": "s-b"}

    def test_type_mismatch_unresolved(self):
        local = [ContentSection(key="k1", section_type="history", sort_order=0)]
        created = [CreatedContentSection(id="s-a", section_type="tips", sort_order=0)]

        assert resolve_section_ids(local, created) == {}
