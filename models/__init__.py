# -*- coding: utf-8 -*-
"""
Almlah Data Models
"""

from .image import EntityKind, ImageDraft, LocalImageFile, UploadResult, UploadStatus
from .place import (
    ContentSection,
    CreatedContentSection,
    CreatedPlace,
    FormDocument,
    SectionType,
)
from .reference import Category, Governate, Property, Wilayah

__all__ = [
    "EntityKind",
    "ImageDraft",
    "LocalImageFile",
    "UploadResult",
    "UploadStatus",
    "ContentSection",
    "CreatedContentSection",
    "CreatedPlace",
    "FormDocument",
    "SectionType",
    "Category",
    "Governate",
    "Property",
    "Wilayah",
]
