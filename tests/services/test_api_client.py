# -*- coding: utf-8 -*-
"""
Tests for the metadata API client.

Tests cover:
- Envelope unwrapping (success:false is an error even with HTTP 200)
- Authentication handling
- Network errors
- Place payload conversion (parent category first)
- Image registration endpoints
"""

import json
from unittest.mock import Mock

import pytest
import requests

from models.image import EntityKind
from services.api_client import ApiConfig, PlacesApiClient
from services.exceptions import ApiException, AuthenticationException, NetworkException


def make_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(payload) if payload is not None else ""
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    config = ApiConfig(base_url="http://api.test/api/v1", token="secret", timeout=5, verify_ssl=True)
    return PlacesApiClient(config, session=session)


class TestEnvelope:
    """Test response envelope handling."""

    def test_data_unwrapped(self, client, session):
        session.request.return_value = make_response(payload={
            "success": True, "data": [{"id": "g1", "name_en": "Muscat"}]
        })

        assert client.get_governates() == [{"id": "g1", "name_en": "Muscat"}]
        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "http://api.test/api/v1/governates"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_success_false_with_200(self, client, session):
        session.request.return_value = make_response(payload={
            "success": False, "error": "Governate not found"
        })

        with pytest.raises(ApiException) as exc_info:
            client.get_wilayahs("missing")

        assert exc_info.value.message == "Governate not found"
        assert exc_info.value.status_code == 200

    def test_http_error_message(self, client, session):
        session.request.return_value = make_response(500, {"success": False, "message": "db down"})

        with pytest.raises(ApiException) as exc_info:
            client.get_primary_categories()

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "db down"

    def test_invalid_json(self, client, session):
        response = make_response(payload={})
        response.text = "<html>"
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(ApiException):
            client.get_governates()

    def test_empty_data_is_empty_list(self, client, session):
        session.request.return_value = make_response(payload={"success": True, "data": None})

        assert client.get_secondary_categories("p1") == []


class TestAuthentication:
    """Test bearer token handling."""

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_token(self, client, session, status_code):
        session.request.return_value = make_response(status_code, {"success": False, "error": "nope"})

        with pytest.raises(AuthenticationException) as exc_info:
            client.create_place({"name_en": "Wadi Shab"})

        assert exc_info.value.status_code == status_code

    def test_missing_token_blocks_post(self, session):
        client = PlacesApiClient(ApiConfig(base_url="http://api.test", token=""), session=session)

        with pytest.raises(AuthenticationException):
            client.register_place_images("p1", [])

        session.request.assert_not_called()

    def test_missing_token_allows_get(self, session):
        client = PlacesApiClient(ApiConfig(base_url="http://api.test", token=""), session=session)
        session.request.return_value = make_response(payload={"success": True, "data": []})

        assert client.get_governates() == []
        assert "Authorization" not in session.request.call_args.kwargs["headers"]

    def test_set_access_token(self, session):
        client = PlacesApiClient(ApiConfig(base_url="http://api.test", token=""), session=session)
        session.request.return_value = make_response(payload={"success": True, "data": {}})

        client.set_access_token("fresh")
        client.register_section_images("s1", [])

        assert session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer fresh"


class TestNetwork:
    """Test connection failures."""

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(NetworkException):
            client.get_governates()

    def test_timeout(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(NetworkException):
            client.get_governates()


class TestPlaces:
    """Test place creation and image registration."""

    def test_create_place_payload(self, client, session):
        session.request.return_value = make_response(201, {"success": True, "data": {"id": "p1"}})

        result = client.create_place({
            "parent_category_id": "parent",
            "category_ids": ["child", "parent", "child"],
            "name_ar": "وادي شاب",
            "name_en": "Wadi Shab",
            "latitude": None,
            "longitude": 59.2,
            "content_sections": [{"section_type": "history", "title_en": "History", "sort_order": 0}],
        })

        assert result == {"id": "p1"}
        body = session.request.call_args.kwargs["json"]
        assert body["category_ids"] == ["parent", "child"]
        assert "latitude" not in body
        assert body["longitude"] == 59.2
        assert body["content_sections"][0]["images"] == []
        assert session.request.call_args.kwargs["url"] == "http://api.test/api/v1/places"

    def test_create_place_without_data(self, client, session):
        session.request.return_value = make_response(payload={"success": True, "data": None})

        with pytest.raises(ApiException):
            client.create_place({"name_en": "Wadi Shab"})

    @pytest.mark.parametrize("kind, path", [
        (EntityKind.PLACE, "/places/e1/images"),
        (EntityKind.GOVERNATE, "/governates/e1/images"),
        (EntityKind.WILAYAH, "/wilayahs/e1/images"),
        (EntityKind.CONTENT_SECTION, "/images/content-sections/e1/images"),
    ])
    def test_register_endpoints(self, client, session, kind, path):
        session.request.return_value = make_response(payload={"success": True, "data": {}})
        images = [{"image_url": "http://x/cover.jpg", "is_primary": True}]

        client.register_images(kind, "e1", images)

        kwargs = session.request.call_args.kwargs
        assert kwargs["url"] == f"http://api.test/api/v1{path}"
        assert kwargs["json"] == {"images": images}
