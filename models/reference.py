# -*- coding: utf-8 -*-
"""
Reference data returned by the cascading lookups.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Category:
    """Primary or secondary place category."""

    id: str
    name_ar: str = ""
    name_en: str = ""
    icon: str = ""
    slug: str = ""
    parent_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Governate:
    """Top level administrative division."""

    id: str
    name_ar: str = ""
    name_en: str = ""
    slug: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Governate":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Wilayah:
    """Administrative division inside a governate."""

    id: str
    name_ar: str = ""
    name_en: str = ""
    slug: str = ""
    governate_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Wilayah":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Property:
    """Amenity that applies to places of a category."""

    id: str
    name_ar: str = ""
    name_en: str = ""
    icon: str = ""
    category_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
