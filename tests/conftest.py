# -*- coding: utf-8 -*-
"""
Shared fixtures: in-memory metadata API and object storage.

The fakes are synchronous, like the real requests-based clients; the
code under test runs them through asyncio.to_thread.
"""

import threading
from types import SimpleNamespace

import pytest

from app.config import Config, WizardSteps
from models.image import LocalImageFile
from services.exceptions import NetworkException, StorageException
from services.storage_client import StoredObject
from wizards.place_submission import PlaceSubmissionWizard


REF = SimpleNamespace(
    NATURE="11111111-1111-4111-8111-111111111111",
    WADI="22222222-2222-4222-8222-222222222222",
    BEACH="33333333-3333-4333-8333-333333333333",
    CULTURE="44444444-4444-4444-8444-444444444444",
    MUSEUM="55555555-5555-4555-8555-555555555555",
    SOUTH_SHARQIYAH="66666666-6666-4666-8666-666666666666",
    SUR="77777777-7777-4777-8777-777777777777",
    MUSCAT="88888888-8888-4888-8888-888888888888",
    MUTTRAH="99999999-9999-4999-8999-999999999999",
    PARKING="aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa",
    GUIDE="bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb",
    PLACE_ID="cccccccc-cccc-4ccc-8ccc-cccccccccccc",
)


class FakeApiClient:
    """Stands in for PlacesApiClient; records every call."""

    def __init__(self):
        self.calls = []
        self.primary = [
            {"id": REF.NATURE, "name_ar": "طبيعة", "name_en": "Nature"},
            {"id": REF.CULTURE, "name_ar": "ثقافة", "name_en": "Culture"},
        ]
        self.secondary = {
            REF.NATURE: [
                {"id": REF.WADI, "name_ar": "وادي", "name_en": "Wadi", "parent_id": REF.NATURE},
                {"id": REF.BEACH, "name_ar": "شاطئ", "name_en": "Beach", "parent_id": REF.NATURE},
            ],
            REF.CULTURE: [
                {"id": REF.MUSEUM, "name_ar": "متحف", "name_en": "Museum", "parent_id": REF.CULTURE},
            ],
        }
        self.governates = [
            {"id": REF.SOUTH_SHARQIYAH, "name_ar": "جنوب الشرقية", "name_en": "South Al Sharqiyah"},
            {"id": REF.MUSCAT, "name_ar": "مسقط", "name_en": "Muscat"},
        ]
        self.wilayahs = {
            REF.SOUTH_SHARQIYAH: [{"id": REF.SUR, "name_ar": "صور", "name_en": "Sur"}],
            REF.MUSCAT: [{"id": REF.MUTTRAH, "name_ar": "مطرح", "name_en": "Muttrah"}],
        }
        self.properties = {
            REF.NATURE: [
                {"id": REF.PARKING, "name_ar": "مواقف", "name_en": "Parking"},
                {"id": REF.GUIDE, "name_ar": "مرشد", "name_en": "Guide"},
            ],
            REF.CULTURE: [],
        }

        self.failing_parents = set()
        self.gates = {}
        self.create_error = None
        self.register_errors = {}
        self.created_payloads = []
        self.registrations = []

    def gate(self, parent_id) -> threading.Event:
        """Block fetches for parent_id until the returned event is set."""
        event = threading.Event()
        self.gates[parent_id] = event
        return event

    def _lookup(self, name, parent_id, table):
        self.calls.append((name, parent_id))
        if parent_id in self.gates:
            self.gates[parent_id].wait(timeout=5)
        if parent_id in self.failing_parents:
            raise NetworkException(f"{name} unavailable")
        return [dict(row) for row in table.get(parent_id, [])]

    def get_primary_categories(self):
        self.calls.append(("primary_categories", None))
        return [dict(row) for row in self.primary]

    def get_governates(self):
        self.calls.append(("governates", None))
        return [dict(row) for row in self.governates]

    def get_secondary_categories(self, parent_id):
        return self._lookup("secondary_categories", parent_id, self.secondary)

    def get_wilayahs(self, governate_id):
        return self._lookup("wilayahs", governate_id, self.wilayahs)

    def get_properties_by_category(self, category_id):
        return self._lookup("properties", category_id, self.properties)

    def create_place(self, place_data):
        self.calls.append(("create_place", None))
        self.created_payloads.append(place_data)
        if self.create_error is not None:
            raise self.create_error
        return {
            "id": REF.PLACE_ID,
            "name_ar": place_data.get("name_ar"),
            "name_en": place_data.get("name_en"),
            "slug": "wadi-shab",
            "content_sections": [
                {
                    "id": f"section-{index}",
                    "section_type": section["section_type"],
                    "sort_order": section["sort_order"],
                }
                for index, section in enumerate(place_data.get("content_sections") or [])
            ],
        }

    def register_images(self, entity_kind, entity_id, images):
        self.calls.append(("register_images", entity_id))
        if entity_id in self.register_errors:
            raise self.register_errors[entity_id]
        self.registrations.append((entity_kind, entity_id, list(images)))
        return {"images": images}

    @property
    def network_calls(self):
        return list(self.calls)


class FakeStorage:
    """Stands in for ObjectStorageClient."""

    BASE = "http://storage.test/storage/v1/object/public/almlah"

    def __init__(self):
        self.objects = {}
        self.uploads = []
        self.deleted = []
        self.fail_data = set()
        self.gate = None

    def upload(self, path, data, content_type):
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self.uploads.append(path)
        if data in self.fail_data:
            raise StorageException("upload rejected", path=path, status_code=500)
        self.objects[path] = data
        return StoredObject(path=path, url=f"{self.BASE}/{path}")

    def delete(self, path):
        self.deleted.append(path)
        self.objects.pop(path, None)


@pytest.fixture
def ref():
    """Reference ids known to the fake API."""
    return REF


@pytest.fixture
def api():
    return FakeApiClient()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def make_image():
    """Factory for local image files."""
    def _make(name="photo.jpg", size=1024, mime_type="image/jpeg", data=None):
        return LocalImageFile(
            file_name=name,
            mime_type=mime_type,
            data=data if data is not None else b"\xff" * size,
        )
    return _make


@pytest.fixture
def wizard(api, storage):
    """Wizard with the default limits (10 files, 5 MB, jpeg/png/webp)."""
    return PlaceSubmissionWizard(
        api, storage,
        config=Config(),
        max_files=10,
        max_file_size=5 * 1024 * 1024,
        accepted_types=("image/jpeg", "image/png", "image/webp"),
    )


@pytest.fixture
def wadi_shab():
    """A complete, valid draft for Wadi Shab."""
    return {
        "parent_category_id": REF.NATURE,
        "category_ids": [REF.WADI],
        "name_ar": "وادي شاب",
        "name_en": "Wadi Shab",
        "subtitle_en": "Emerald pools and a hidden cave",
        "governate_id": REF.SOUTH_SHARQIYAH,
        "wilayah_id": REF.SUR,
        "latitude": 22.8397,
        "longitude": 59.2412,
        "description_ar": "وادي شاب من أجمل الأودية في سلطنة عمان",
        "description_en": "Wadi Shab is one of the most beautiful wadis in Oman.",
        "property_ids": [REF.PARKING],
        "phone": "+968 9000 0000",
        "email": "info@wadishab.om",
        "website": "https://wadishab.om",
    }


def _walk_to_review(wizard):
    """Advance until the review step; returns the errors that stopped it."""

    while wizard.current_step < WizardSteps.REVIEW:
        errors = wizard.advance()
        if errors:
            return errors
    return {}


@pytest.fixture
def walk_to_review():
    return _walk_to_review


@pytest.fixture
def review_wizard(wizard, wadi_shab, make_image):
    """Wizard filled with the Wadi Shab draft plus two images, on review."""
    wizard.update(wadi_shab)
    wizard.add_images([
        make_image("pools.jpg", data=b"pools"),
        make_image("cave.png", mime_type="image/png", data=b"cave"),
    ])
    errors = _walk_to_review(wizard)
    assert errors == {}
    return wizard
