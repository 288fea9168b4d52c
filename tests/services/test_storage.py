# -*- coding: utf-8 -*-
"""
Tests for object storage access and storage paths.

Tests cover:
- Upload/delete requests against the storage REST API
- Public URL and path extraction
- Deterministic, collision-resistant paths
"""

from unittest.mock import Mock

import pytest
import requests

from models.image import EntityKind, ImageDraft, LocalImageFile
from services.exceptions import StorageException
from services.storage_client import ObjectStorageClient
from services.storage_paths import UploadScope, build_storage_path


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    return ObjectStorageClient(
        base_url="http://storage.test/", bucket="almlah", api_key="key", timeout=5, session=session
    )


def draft(name="a.jpg", order=0, primary=False):
    return ImageDraft(
        local_file=LocalImageFile(file_name=name, mime_type="image/jpeg", data=b"x"),
        display_order=order,
        is_primary=primary,
    )


class TestStorageClient:
    """Test the REST calls."""

    def test_upload(self, client, session):
        response = Mock(status_code=200)
        response.json.return_value = {"Key": "almlah/places/p1/cover.jpg"}
        session.post.return_value = response

        stored = client.upload("places/p1/cover.jpg", b"data", "image/jpeg")

        assert stored.path == "places/p1/cover.jpg"
        assert stored.url == "http://storage.test/storage/v1/object/public/almlah/places/p1/cover.jpg"
        args, kwargs = session.post.call_args
        assert args[0] == "http://storage.test/storage/v1/object/almlah/places/p1/cover.jpg"
        assert kwargs["headers"]["x-upsert"] == "true"
        assert kwargs["headers"]["Content-Type"] == "image/jpeg"
        assert kwargs["headers"]["Authorization"] == "Bearer key"

    def test_upload_http_error(self, client, session):
        response = Mock(status_code=413)
        response.json.return_value = {"message": "Payload too large"}
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
        session.post.return_value = response

        with pytest.raises(StorageException) as exc_info:
            client.upload("places/p1/cover.jpg", b"data", "image/jpeg")

        assert exc_info.value.status_code == 413
        assert exc_info.value.message == "Payload too large"
        assert exc_info.value.path == "places/p1/cover.jpg"

    def test_upload_connection_error(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(StorageException):
            client.upload("places/p1/cover.jpg", b"data", "image/jpeg")

    def test_delete_by_public_url(self, client, session):
        session.delete.return_value = Mock(status_code=200)

        client.delete(client.public_url("places/p1/gallery/002_ab.jpg"))

        args, kwargs = session.delete.call_args
        assert args[0] == "http://storage.test/storage/v1/object/almlah"
        assert kwargs["json"] == {"prefixes": ["places/p1/gallery/002_ab.jpg"]}


class TestStoragePaths:
    """Test path derivation."""

    def test_primary_is_cover(self):
        path = build_storage_path(UploadScope.for_place("p1"), draft(primary=True))

        assert path == "places/p1/cover.jpg"

    def test_gallery_sequence_and_token(self):
        image = draft("b.png", order=2)

        path = build_storage_path(UploadScope.for_place("p1"), image)

        token = image.draft_id.replace("-", "")[:8]
        assert path == f"places/p1/gallery/003_{token}.png"

    def test_same_draft_same_path(self):
        image = draft(order=1)
        scope = UploadScope(EntityKind.GOVERNATE, "g1")

        assert build_storage_path(scope, image) == build_storage_path(scope, image)
        assert build_storage_path(scope, image).startswith("governates/g1/gallery/002_")

    def test_different_drafts_do_not_collide(self):
        scope = UploadScope.for_place("p1")

        assert build_storage_path(scope, draft(order=1)) != build_storage_path(scope, draft(order=1))

    def test_section_path(self):
        image = draft(order=0)

        path = build_storage_path(UploadScope.for_section("p1", "s1"), image)

        assert path.startswith("places/p1/sections/s1/001_")

    def test_section_without_place(self):
        with pytest.raises(ValueError):
            build_storage_path(UploadScope(EntityKind.CONTENT_SECTION, "s1"), draft())
