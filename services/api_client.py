# -*- coding: utf-8 -*-
"""
Almlah Metadata API Client
==========================

Covers the endpoints used by the place submission wizard: the cascading
reference lookups, place creation and the batch image registration calls.

Every response is wrapped as {success, data?, error?|message?}; a
success:false envelope is raised as ApiException even with HTTP 200.
"""

import json as _json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
import urllib3

from models.image import EntityKind
from services.exceptions import ApiException, AuthenticationException, NetworkException
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ApiConfig:
    """
    Metadata API connection settings.

    Reads from .env via Config when values are not given:
        API_BASE_URL=http://localhost:9000/api/v1
        API_TOKEN=<bearer token>
    """
    base_url: str = None
    token: Optional[str] = None
    timeout: int = None
    verify_ssl: bool = None

    def __post_init__(self):
        """Load from Config if not provided."""
        from app.config import Config

        if self.base_url is None:
            self.base_url = Config.API_BASE_URL
        if self.token is None:
            self.token = Config.API_TOKEN
        if self.timeout is None:
            self.timeout = Config.API_TIMEOUT
        if self.verify_ssl is None:
            self.verify_ssl = Config.API_VERIFY_SSL


class PlacesApiClient:
    """
    Client for the Almlah metadata API.

    Usage:
        client = PlacesApiClient(ApiConfig(token="..."))
        governates = client.get_governates()
        place = client.create_place(document.to_dict())
    """

    # Batch registration endpoint per owning entity
    IMAGE_ENDPOINTS = {
        EntityKind.PLACE: "/places/{id}/images",
        EntityKind.GOVERNATE: "/governates/{id}/images",
        EntityKind.WILAYAH: "/wilayahs/{id}/images",
        EntityKind.CONTENT_SECTION: "/images/content-sections/{id}/images",
    }

    def __init__(self, config: Optional[ApiConfig] = None,
                 session: Optional[requests.Session] = None):
        self.config = config or ApiConfig()
        self.base_url = self.config.base_url.rstrip('/')
        self.access_token: Optional[str] = self.config.token
        self.session = session or requests.Session()

        if not self.config.verify_ssl:
            # Self-signed certificates in development
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    # ==================== Authentication ====================

    def set_access_token(self, token: Optional[str]):
        """Set the bearer token from the external auth session."""
        self.access_token = token
        logger.debug("Access token updated externally")

    def _headers(self, auth_required: bool) -> Dict[str, str]:
        """Headers with Authorization when a token is available."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json"
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        elif auth_required:
            raise AuthenticationException("Not authenticated: no access token", status_code=401)
        return headers

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict] = None,
        params: Optional[Dict] = None,
        auth_required: bool = False
    ) -> Any:
        """
        Perform an HTTP request and unwrap the response envelope.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint (e.g., "/governates")
            json_data: JSON payload
            params: Query parameters
            auth_required: Raise AuthenticationException when no token is set

        Returns:
            The envelope's data member
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._headers(auth_required)

        logger.info(f"[API REQ] {method} {endpoint}")
        if params:
            logger.debug(f"[API REQ] Params: {params}")
        if json_data:
            logger.debug(
                f"[API REQ] Body: {_json.dumps(json_data, ensure_ascii=False, default=str)}"
            )

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=json_data,
                params=params,
                headers=headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl
            )
            response.raise_for_status()

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else 0
            response_data = {}
            try:
                response_data = e.response.json() if e.response is not None else {}
            except (ValueError, AttributeError):
                pass
            logger.error(f"[API ERR] {status_code} {method} {endpoint} | Response: {response_data}")
            message = self._envelope_message(response_data) or str(e)
            if status_code in (401, 403):
                raise AuthenticationException(
                    message=message, status_code=status_code, response_data=response_data
                )
            raise ApiException(
                message=message,
                status_code=status_code,
                response_data=response_data
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.error(f"Network error: {endpoint} - {e}")
            raise NetworkException(
                message=str(e),
                original_error=e
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {endpoint} - {e}")
            raise NetworkException(
                message=str(e),
                original_error=e
            )

        result = None
        if response.text:
            try:
                result = response.json()
            except ValueError:
                raise ApiException(
                    message="Response is not valid JSON",
                    status_code=response.status_code
                )

        logger.info(f"[API RES] {response.status_code} {endpoint}")
        return self._unwrap(result, response.status_code, endpoint)

    @staticmethod
    def _envelope_message(payload: Any) -> str:
        if isinstance(payload, dict):
            return payload.get("error") or payload.get("message") or ""
        return ""

    def _unwrap(self, payload: Any, status_code: int, endpoint: str) -> Any:
        """Return envelope data; success:false is a domain error."""
        if not isinstance(payload, dict) or "success" not in payload:
            return payload

        if not payload.get("success"):
            message = self._envelope_message(payload) or "Request failed"
            logger.error(f"[API ERR] {status_code} {endpoint} | success=false: {message}")
            raise ApiException(
                message=message,
                status_code=status_code,
                response_data=payload
            )
        return payload.get("data")

    # ==================== Reference Data ====================

    def get_primary_categories(self) -> List[Dict[str, Any]]:
        """GET /categories/primary"""
        return self._request("GET", "/categories/primary") or []

    def get_secondary_categories(self, parent_id: str) -> List[Dict[str, Any]]:
        """GET /categories/secondary/{parentId}"""
        return self._request("GET", f"/categories/secondary/{parent_id}") or []

    def get_governates(self) -> List[Dict[str, Any]]:
        """GET /governates"""
        return self._request("GET", "/governates") or []

    def get_wilayahs(self, governate_id: str) -> List[Dict[str, Any]]:
        """GET /governates/{id}/wilayahs"""
        return self._request("GET", f"/governates/{governate_id}/wilayahs") or []

    def get_properties_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        """GET /properties/category/{categoryId}"""
        return self._request("GET", f"/properties/category/{category_id}") or []

    # ==================== Places ====================

    def create_place(self, place_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a place record (text only, no binaries).

        Args:
            place_data: FormDocument.to_dict() output

        Returns:
            Created place with its content sections
        """
        api_data = self._convert_place_to_api_format(place_data)
        result = self._request("POST", "/places", json_data=api_data, auth_required=True)
        if not isinstance(result, dict):
            raise ApiException(message="Create place returned no data")
        logger.info(f"Place created: {result.get('id')}")
        return result

    def _convert_place_to_api_format(self, place_data: Dict[str, Any]) -> Dict[str, Any]:
        """Convert the form document to the CreatePlaceRequest shape."""
        parent_id = place_data.get("parent_category_id")
        category_ids = [parent_id] if parent_id else []
        for category_id in place_data.get("category_ids") or []:
            if category_id not in category_ids:
                category_ids.append(category_id)

        api_data = {
            "name_ar": place_data.get("name_ar", ""),
            "name_en": place_data.get("name_en", ""),
            "subtitle_ar": place_data.get("subtitle_ar") or "",
            "subtitle_en": place_data.get("subtitle_en") or "",
            "description_ar": place_data.get("description_ar", ""),
            "description_en": place_data.get("description_en", ""),
            "governate_id": place_data.get("governate_id"),
            "wilayah_id": place_data.get("wilayah_id"),
            "category_ids": category_ids,
            "property_ids": list(place_data.get("property_ids") or []),
            "phone": place_data.get("phone") or "",
            "email": place_data.get("email") or "",
            "website": place_data.get("website") or "",
            "content_sections": [
                {
                    "section_type": section.get("section_type"),
                    "title_ar": section.get("title_ar", ""),
                    "title_en": section.get("title_en", ""),
                    "content_ar": section.get("content_ar", ""),
                    "content_en": section.get("content_en", ""),
                    "sort_order": section.get("sort_order", 0),
                    "images": [],
                }
                for section in place_data.get("content_sections") or []
            ],
        }

        # Coordinates are optional
        if place_data.get("latitude") is not None:
            api_data["latitude"] = place_data["latitude"]
        if place_data.get("longitude") is not None:
            api_data["longitude"] = place_data["longitude"]

        return api_data

    # ==================== Images ====================

    def register_images(
        self,
        entity_kind: EntityKind,
        entity_id: str,
        images: List[Dict[str, Any]]
    ) -> Any:
        """
        Register uploaded image URLs against their owning entity.

        Args:
            entity_kind: Owner kind (place, governate, wilayah, content section)
            entity_id: Owner id
            images: Image payloads in the shape expected by that endpoint
        """
        endpoint = self.IMAGE_ENDPOINTS[entity_kind].format(id=entity_id)
        result = self._request(
            "POST", endpoint, json_data={"images": images}, auth_required=True
        )
        logger.info(f"Registered {len(images)} image(s) for {entity_kind.value}/{entity_id}")
        return result

    def register_place_images(self, place_id: str, images: List[Dict[str, Any]]) -> Any:
        """POST /places/{placeId}/images"""
        return self.register_images(EntityKind.PLACE, place_id, images)

    def register_section_images(self, section_id: str, images: List[Dict[str, Any]]) -> Any:
        """POST /images/content-sections/{sectionId}/images"""
        return self.register_images(EntityKind.CONTENT_SECTION, section_id, images)
