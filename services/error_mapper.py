# -*- coding: utf-8 -*-
"""Centralized error message mapper."""

from typing import Dict

from services.exceptions import (
    ApiException,
    AuthenticationException,
    NetworkException,
    ResourceException,
    StorageException,
)
from utils.logger import get_logger

logger = get_logger(__name__)

MESSAGES = {
    "api.connection": "Could not reach the server. Please try again.",
    "api.timeout": "The server took too long to respond. Please try again.",
    "api.auth": "Your session has expired. Please sign in again.",
    "api.validation": "The server rejected some of the submitted fields.",
    "api.conflict": "A place with these details already exists.",
    "api.server": "The server failed to process the request. Please try again later.",
    "storage.upload": "The image could not be uploaded.",
}


def map_api_error(error: ApiException) -> str:
    """Map API exception to a user-friendly message.

    Technical details are logged only - never shown to the user.
    """
    status = error.status_code

    if isinstance(error, AuthenticationException) or status in (401, 403):
        logger.warning(f"API authentication error ({status}): {error}")
        return MESSAGES["api.auth"]

    if status == 400:
        details = _extract_validation_details(error.response_data)
        if details:
            logger.warning(f"API validation error (400): {details}")
        return MESSAGES["api.validation"]

    if status == 409:
        logger.warning(f"API conflict (409): {error}")
        return MESSAGES["api.conflict"]

    if status:
        logger.warning(f"API error ({status}): {error}")
    if status and status >= 500:
        return MESSAGES["api.server"]
    return MESSAGES["api.connection"]


def map_network_error(error: NetworkException) -> str:
    """Map network exception to a user-friendly message."""
    msg = str(error.original_error) if error.original_error else error.message
    if "timeout" in msg.lower() or "timed out" in msg.lower():
        return MESSAGES["api.timeout"]
    return MESSAGES["api.connection"]


def map_exception(error: Exception, context: str = None) -> str:
    """Map any exception to a user-friendly message.

    Technical details are logged only - never shown to the user.
    """
    if isinstance(error, ApiException):
        if not error.context and context:
            error.context = context
        return map_api_error(error)

    if isinstance(error, NetworkException):
        return map_network_error(error)

    if isinstance(error, StorageException):
        logger.warning(f"Storage error ({error.status_code}) for {error.path}: {error}")
        return MESSAGES["storage.upload"]

    if isinstance(error, ResourceException):
        # Staging rejections are already user-facing
        return error.message

    logger.warning(f"Unexpected error: {error}")
    return MESSAGES["api.connection"]


def extract_field_errors(response_data: dict) -> Dict[str, str]:
    """Field -> first message from a 400 response body."""
    if not isinstance(response_data, dict):
        return {}

    errors = response_data.get("errors")
    if errors is None and isinstance(response_data.get("data"), dict):
        errors = response_data["data"].get("errors")

    result: Dict[str, str] = {}
    if isinstance(errors, dict):
        for field, messages in errors.items():
            if isinstance(messages, list):
                if messages:
                    result[field] = str(messages[0])
            else:
                result[field] = str(messages)
    elif isinstance(errors, list):
        for item in errors:
            if isinstance(item, dict) and item.get("field"):
                result.setdefault(item["field"], str(item.get("message", "")))
    return result


def _extract_validation_details(response_data: dict) -> str:
    """Extract validation error details from API response."""
    if not response_data:
        return ""

    errors = response_data.get("errors", {})
    if isinstance(errors, dict):
        lines = []
        for field, messages in errors.items():
            if isinstance(messages, list):
                for msg in messages:
                    lines.append(f"• {field}: {msg}")
            else:
                lines.append(f"• {field}: {messages}")
        return "\n".join(lines)

    if isinstance(errors, list):
        return "\n".join(f"• {e}" for e in errors)

    return response_data.get("error") or response_data.get("message") or ""
