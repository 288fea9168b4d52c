# -*- coding: utf-8 -*-
"""
Almlah Service Layer
"""

# Lazy imports to avoid circular dependencies
__all__ = [
    "PlacesApiClient",
    "ObjectStorageClient",
    "DependencyResolver",
    "ImageStagingBuffer",
    "UploadPipeline",
    "SubmissionCoordinator",
]


def __getattr__(name):
    """Lazy import to avoid circular dependencies."""
    if name == "PlacesApiClient":
        from .api_client import PlacesApiClient
        return PlacesApiClient
    elif name == "ObjectStorageClient":
        from .storage_client import ObjectStorageClient
        return ObjectStorageClient
    elif name == "DependencyResolver":
        from .dependency_resolver import DependencyResolver
        return DependencyResolver
    elif name == "ImageStagingBuffer":
        from .staging_buffer import ImageStagingBuffer
        return ImageStagingBuffer
    elif name == "UploadPipeline":
        from .upload_pipeline import UploadPipeline
        return UploadPipeline
    elif name == "SubmissionCoordinator":
        from .submission_coordinator import SubmissionCoordinator
        return SubmissionCoordinator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
