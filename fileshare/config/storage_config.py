"""
Storage Configuration

Blob root, upload limits and lifecycle defaults read from the environment.
"""

import os
from typing import FrozenSet, Optional

from fileshare.domain.errors import InvalidConfigurationError
from fileshare.domain.file_storage.value_objects import ExpiryHours

SWEEP_MODES = ("celery", "inprocess", "off")

DEFAULT_ALLOWED_MIME_TYPES = frozenset(
    [
        # Documents
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
        # Images
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        # Video
        "video/mp4",
        "video/avi",
        "video/mov",
        "video/wmv",
        "video/webm",
        # Audio
        "audio/mp3",
        "audio/wav",
        "audio/ogg",
        "audio/mpeg",
        # Archives
        "application/zip",
        "application/x-rar-compressed",
        "application/x-7z-compressed",
        "application/gzip",
        "application/x-tar",
        # Other
        "application/json",
        "application/xml",
        "text/xml",
    ]
)


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


def _mime_types(name: str) -> FrozenSet[str]:
    value = os.getenv(name, "")
    types = {item.strip().lower() for item in value.split(",") if item.strip()}
    return frozenset(types) or DEFAULT_ALLOWED_MIME_TYPES


class StorageConfig:
    """File lifecycle settings."""

    def __init__(self):
        self.upload_dir = os.getenv("UPLOAD_DIR", "./uploads")
        self.max_file_size = int(os.getenv("MAX_FILE_SIZE", 100 * 1024 * 1024))
        self.default_expiry_hours = int(os.getenv("DEFAULT_EXPIRY_HOURS", ExpiryHours.DEFAULT))
        self.default_max_downloads = int(os.getenv("DEFAULT_MAX_DOWNLOADS", 100))
        self.sweep_interval_seconds = float(os.getenv("SWEEP_INTERVAL_SECONDS", 3600))
        self.sweep_mode = os.getenv("SWEEP_MODE", "celery").lower()
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.access_log_limit = _optional_int("ACCESS_LOG_LIMIT")
        self.allowed_mime_types = _mime_types("ALLOWED_MIME_TYPES")

        self.validate()

    def validate(self) -> None:
        """
        Raises:
            InvalidConfigurationError: If a setting is out of range
        """
        ExpiryHours(self.default_expiry_hours)

        if self.sweep_mode not in SWEEP_MODES:
            raise InvalidConfigurationError(
                f"SWEEP_MODE must be one of {', '.join(SWEEP_MODES)}, got {self.sweep_mode!r}"
            )
        if self.sweep_interval_seconds <= 0:
            raise InvalidConfigurationError("SWEEP_INTERVAL_SECONDS must be positive")
        if self.default_max_downloads < 1:
            raise InvalidConfigurationError("DEFAULT_MAX_DOWNLOADS must be at least 1")
        if self.max_file_size < 1:
            raise InvalidConfigurationError("MAX_FILE_SIZE must be positive")
        if self.access_log_limit is not None and self.access_log_limit < 1:
            raise InvalidConfigurationError("ACCESS_LOG_LIMIT must be at least 1 when set")
