# -*- coding: utf-8 -*-
"""Custom exceptions for the application."""


class ApiException(Exception):
    """Exception raised for API errors (HTTP status or success:false envelope)."""

    def __init__(self, message: str, status_code: int = None,
                 response_data: dict = None, context: str = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        self.context = context

    def __str__(self):
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class AuthenticationException(ApiException):
    """Missing or rejected bearer token (401/403)."""


class NetworkException(Exception):
    """Exception raised for network/connection errors."""

    def __init__(self, message: str, original_error: Exception = None,
                 context: str = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = context


class StorageException(Exception):
    """Exception raised by the object storage service."""

    def __init__(self, message: str, path: str = None, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.status_code = status_code


class ResourceException(Exception):
    """A file rejected at staging time (too large, wrong type, over capacity)."""

    def __init__(self, message: str, file_name: str = None):
        super().__init__(message)
        self.message = message
        self.file_name = file_name
