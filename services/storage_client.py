# -*- coding: utf-8 -*-
"""
Object storage client (Supabase Storage REST API).

Path-addressed binary store:
    upload  POST   {url}/storage/v1/object/{bucket}/{path}   (x-upsert: true)
    delete  DELETE {url}/storage/v1/object/{bucket}           {"prefixes": [path]}
    public  GET    {url}/storage/v1/object/public/{bucket}/{path}
"""

from dataclasses import dataclass
from typing import Optional

import requests

from services.exceptions import StorageException
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class StoredObject:
    """Where a binary actually landed."""
    path: str
    url: str


class ObjectStorageClient:
    """Uploads, deletes and resolves public URLs for image binaries."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        bucket: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None
    ):
        from app.config import Config

        self.base_url = (base_url or Config.STORAGE_URL).rstrip('/')
        self.bucket = bucket or Config.STORAGE_BUCKET
        self.api_key = api_key if api_key is not None else Config.STORAGE_API_KEY
        self.timeout = timeout or Config.STORAGE_TIMEOUT
        self.cache_control = Config.STORAGE_CACHE_CONTROL
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    def public_url(self, path: str) -> str:
        """Public URL for a stored path."""
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path.lstrip('/')}"

    def extract_path(self, url: str) -> str:
        """Storage path from a public URL; plain paths are returned as-is."""
        prefix = f"{self.base_url}/storage/v1/object/public/{self.bucket}/"
        if url.startswith(prefix):
            return url[len(prefix):]
        return url

    def upload(self, path: str, data: bytes, content_type: str) -> StoredObject:
        """
        Upload a binary, overwriting any object already at path.

        Raises:
            StorageException: on HTTP or connection failure
        """
        path = path.lstrip('/')
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"
        headers = self._headers()
        headers.update({
            "Content-Type": content_type or "application/octet-stream",
            "cache-control": f"max-age={self.cache_control}",
            "x-upsert": "true",
        })

        logger.info(f"[STORAGE REQ] POST {path} ({len(data)} bytes, {content_type})")
        try:
            response = self.session.post(url, data=data, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else 0
            logger.error(f"[STORAGE ERR] {status_code} POST {path}")
            raise StorageException(
                message=self._error_message(e.response) or str(e),
                path=path,
                status_code=status_code
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"[STORAGE ERR] POST {path} - {e}")
            raise StorageException(message=str(e), path=path)

        stored_path = self._stored_path(response, path)
        logger.info(f"[STORAGE RES] {response.status_code} {stored_path}")
        return StoredObject(path=stored_path, url=self.public_url(stored_path))

    def delete(self, path: str) -> None:
        """
        Delete an object by path or public URL.

        Raises:
            StorageException: on HTTP or connection failure
        """
        path = self.extract_path(path)
        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        logger.info(f"[STORAGE REQ] DELETE {path}")
        try:
            response = self.session.delete(
                url, json={"prefixes": [path]}, headers=self._headers(), timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else 0
            logger.error(f"[STORAGE ERR] {status_code} DELETE {path}")
            raise StorageException(message=str(e), path=path, status_code=status_code)
        except requests.exceptions.RequestException as e:
            logger.error(f"[STORAGE ERR] DELETE {path} - {e}")
            raise StorageException(message=str(e), path=path)

    def _stored_path(self, response, requested_path: str) -> str:
        """Supabase answers {"Key": "<bucket>/<path>"}."""
        try:
            key = (response.json() or {}).get("Key")
        except (ValueError, AttributeError):
            key = None
        if not key:
            return requested_path
        bucket_prefix = f"{self.bucket}/"
        return key[len(bucket_prefix):] if key.startswith(bucket_prefix) else key

    @staticmethod
    def _error_message(response) -> str:
        if response is None:
            return ""
        try:
            payload = response.json()
        except ValueError:
            return ""
        if isinstance(payload, dict):
            return payload.get("message") or payload.get("error") or ""
        return ""
