# -*- coding: utf-8 -*-


from pathlib import Path
from dataclasses import dataclass
from typing import Tuple
import os

from dotenv import load_dotenv

# ============================================================================
# Load .env file for local environment configuration
# ============================================================================
load_dotenv()

# ============================================================================
# Read settings from environment variables (from .env or system)
# ============================================================================
# Metadata API Settings
_API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:9000/api/v1")
_API_TIMEOUT = int(os.getenv("API_TIMEOUT", "30"))
_API_TOKEN = os.getenv("API_TOKEN", None)
_API_VERIFY_SSL = os.getenv("API_VERIFY_SSL", "true").lower() in ("true", "1", "yes")

# Object Storage Settings (Supabase Storage REST API)
_STORAGE_URL = os.getenv("STORAGE_URL", "http://localhost:54321")
_STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "almlah")
_STORAGE_API_KEY = os.getenv("STORAGE_API_KEY", "")
_STORAGE_TIMEOUT = int(os.getenv("STORAGE_TIMEOUT", "60"))

# Image Upload Limits
_UPLOAD_MAX_FILE_SIZE = int(os.getenv("UPLOAD_MAX_FILE_SIZE", str(5 * 1024 * 1024)))
_UPLOAD_MAX_FILES = int(os.getenv("UPLOAD_MAX_FILES", "10"))
_UPLOAD_ACCEPTED_TYPES = tuple(
    t.strip() for t in os.getenv(
        "UPLOAD_ACCEPTED_TYPES", "image/jpeg,image/png,image/webp"
    ).split(",") if t.strip()
)


@dataclass
class Config:
    """Application configuration."""

    # Application Info
    APP_NAME: str = "Almlah"
    APP_TITLE: str = "Almlah Place Submission"
    APP_TITLE_AR: str = "إضافة مكان - الملاح"
    VERSION: str = "1.0.0"

    # Metadata API Settings
    # Reads from .env file (API_BASE_URL, API_TIMEOUT, API_TOKEN)
    API_BASE_URL: str = _API_BASE_URL
    API_TIMEOUT: int = _API_TIMEOUT
    API_TOKEN: str = _API_TOKEN
    API_VERIFY_SSL: bool = _API_VERIFY_SSL

    # Object Storage
    STORAGE_URL: str = _STORAGE_URL
    STORAGE_BUCKET: str = _STORAGE_BUCKET
    STORAGE_API_KEY: str = _STORAGE_API_KEY
    STORAGE_TIMEOUT: int = _STORAGE_TIMEOUT
    STORAGE_CACHE_CONTROL: str = "3600"

    # Image Staging
    UPLOAD_MAX_FILE_SIZE: int = _UPLOAD_MAX_FILE_SIZE  # bytes
    UPLOAD_MAX_FILES: int = _UPLOAD_MAX_FILES
    UPLOAD_ACCEPTED_TYPES: Tuple[str, ...] = _UPLOAD_ACCEPTED_TYPES

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # Logging
    LOG_FILE: str = "app.log"
    LOG_PATH: Path = LOGS_DIR / LOG_FILE
    LOG_MAX_BYTES: int = 5 * 1024 * 1024  # 5MB
    LOG_BACKUP_COUNT: int = 3


# Wizard steps (1-based, as shown to the user)
class WizardSteps:
    """Step numbers and bilingual titles of the place submission wizard."""

    CATEGORY = 1
    BASIC_INFO = 2
    LOCATION = 3
    DESCRIPTION = 4
    IMAGES = 5
    PROPERTIES_CONTACT = 6
    REVIEW = 7
    SUCCESS = 8

    TITLES = {
        CATEGORY: ("Category", "التصنيف"),
        BASIC_INFO: ("Basic Info", "المعلومات الأساسية"),
        LOCATION: ("Location", "الموقع"),
        DESCRIPTION: ("Description & Content", "الوصف والمحتوى"),
        IMAGES: ("Images", "الصور"),
        PROPERTIES_CONTACT: ("Properties & Contact", "المرافق والتواصل"),
        REVIEW: ("Review", "المراجعة"),
        SUCCESS: ("Success", "تم بنجاح"),
    }

    @classmethod
    def get_title(cls, step: int, arabic: bool = False) -> str:
        """Get display title for a step."""
        titles = cls.TITLES.get(step)
        if not titles:
            return ""
        return titles[1] if arabic else titles[0]
