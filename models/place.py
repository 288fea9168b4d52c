# -*- coding: utf-8 -*-
"""
Place draft and created-place models.
"""

import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional


class SectionType(Enum):
    """Closed set of content section types."""
    HISTORY = "history"
    ACTIVITIES = "activities"
    FACILITIES = "facilities"
    LOCATION = "location"
    TIPS = "tips"
    OPENING_HOURS = "opening_hours"
    CONTACT = "contact"
    GALLERY = "gallery"
    REVIEWS = "reviews"
    OTHER = "other"

    @property
    def label_en(self) -> str:
        return _SECTION_LABELS[self][0]

    @property
    def label_ar(self) -> str:
        return _SECTION_LABELS[self][1]

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


_SECTION_LABELS = {
    SectionType.HISTORY: ("History", "التاريخ"),
    SectionType.ACTIVITIES: ("Activities", "الأنشطة"),
    SectionType.FACILITIES: ("Facilities", "المرافق"),
    SectionType.LOCATION: ("Location Details", "تفاصيل الموقع"),
    SectionType.TIPS: ("Visitor Tips", "نصائح للزوار"),
    SectionType.OPENING_HOURS: ("Opening Hours", "ساعات العمل"),
    SectionType.CONTACT: ("Contact Information", "معلومات الاتصال"),
    SectionType.GALLERY: ("Photo Gallery", "معرض الصور"),
    SectionType.REVIEWS: ("Reviews & Ratings", "التقييمات والآراء"),
    SectionType.OTHER: ("Other Information", "معلومات أخرى"),
}


def unique_ids(values) -> List[str]:
    """Drop duplicates and empty values, keeping first occurrence."""
    seen = set()
    result = []
    for value in values or []:
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


@dataclass
class ContentSection:
    """A bilingual, typed sub-block of a place's description."""

    # Client-side key, used to match the server-assigned section id
    key: str = field(default_factory=lambda: str(uuid.uuid4()))
    section_type: str = SectionType.OTHER.value
    title_ar: str = ""
    title_en: str = ""
    content_ar: str = ""
    content_en: str = ""
    sort_order: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "section_type": self.section_type,
            "title_ar": self.title_ar,
            "title_en": self.title_en,
            "content_ar": self.content_ar,
            "content_en": self.content_en,
            "sort_order": self.sort_order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentSection":
        """Create ContentSection from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class FormDocument:
    """
    The accumulating place draft held by the wizard.

    Images are not stored here: the wizard context owns one staging
    buffer for place-level images and one per content section.
    """

    # Step 1: Category Selection
    parent_category_id: Optional[str] = None
    category_ids: List[str] = field(default_factory=list)

    # Step 2: Basic Info
    name_ar: str = ""
    name_en: str = ""
    subtitle_ar: str = ""
    subtitle_en: str = ""

    # Step 3: Location
    governate_id: Optional[str] = None
    wilayah_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Step 4: Description & Content
    description_ar: str = ""
    description_en: str = ""
    content_sections: List[ContentSection] = field(default_factory=list)

    # Step 6: Properties & Contact
    property_ids: List[str] = field(default_factory=list)
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def merge(self, partial: Dict[str, Any]):
        """
        Merge a partial document in place.

        Only the given keys change. Unknown keys raise ValueError before
        anything is written.
        """
        unknown = set(partial) - set(self.field_names())
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")

        for key, value in partial.items():
            if key in ("category_ids", "property_ids"):
                value = unique_ids(value)
            elif key == "content_sections":
                value = [
                    s if isinstance(s, ContentSection) else ContentSection.from_dict(s)
                    for s in (value or [])
                ]
            setattr(self, key, value)

    def submission_category_ids(self) -> List[str]:
        """Parent category first, then the selected children."""
        ids = [self.parent_category_id] if self.parent_category_id else []
        return unique_ids(ids + list(self.category_ids))

    def get_section(self, key: str) -> Optional[ContentSection]:
        for section in self.content_sections:
            if section.key == key:
                return section
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "parent_category_id": self.parent_category_id,
            "category_ids": list(self.category_ids),
            "name_ar": self.name_ar,
            "name_en": self.name_en,
            "subtitle_ar": self.subtitle_ar,
            "subtitle_en": self.subtitle_en,
            "governate_id": self.governate_id,
            "wilayah_id": self.wilayah_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "description_ar": self.description_ar,
            "description_en": self.description_en,
            "content_sections": [s.to_dict() for s in self.content_sections],
            "property_ids": list(self.property_ids),
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormDocument":
        """Create FormDocument from dictionary, ignoring unknown keys."""
        document = cls()
        document.merge({k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        return document


@dataclass
class CreatedContentSection:
    """A content section as returned by the metadata API."""

    id: str
    section_type: str = ""
    sort_order: int = 0
    title_ar: str = ""
    title_en: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreatedContentSection":
        return cls(
            id=str(data.get("id", "")),
            section_type=data.get("section_type", ""),
            sort_order=int(data.get("sort_order") or 0),
            title_ar=data.get("title_ar", ""),
            title_en=data.get("title_en", ""),
        )


@dataclass
class CreatedPlace:
    """Server identity of a place once the metadata record exists."""

    id: str
    name_ar: str = ""
    name_en: str = ""
    slug: str = ""
    content_sections: List[CreatedContentSection] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreatedPlace":
        if not data or not data.get("id"):
            raise ValueError("Created place response has no id")
        return cls(
            id=str(data["id"]),
            name_ar=data.get("name_ar", ""),
            name_en=data.get("name_en", ""),
            slug=data.get("slug", ""),
            content_sections=[
                CreatedContentSection.from_dict(s)
                for s in (data.get("content_sections") or [])
            ],
            raw=dict(data),
        )
