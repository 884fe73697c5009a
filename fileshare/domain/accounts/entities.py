"""
Account Entities

The slice of a user account the file lifecycle cares about: identity,
aggregate upload statistics and upload preferences.
"""

from dataclasses import dataclass, field
from typing import Optional

from fileshare.domain.file_storage.value_objects import ExpiryHours


@dataclass
class UploadStats:
    """Aggregate counters, maintained incrementally rather than recomputed."""

    total_files: int = 0
    total_size: int = 0
    total_downloads: int = 0

    def to_dict(self) -> dict:
        return {
            "total_files": self.total_files,
            "total_size": self.total_size,
            "total_downloads": self.total_downloads,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UploadStats":
        return cls(
            total_files=int(data.get("total_files") or 0),
            total_size=int(data.get("total_size") or 0),
            total_downloads=int(data.get("total_downloads") or 0),
        )


@dataclass
class UserPreferences:
    """Per-user upload defaults."""

    default_expiry_hours: int = ExpiryHours.DEFAULT
    email_notifications: bool = True

    def __post_init__(self):
        # Validates the range, raises InvalidConfigurationError
        ExpiryHours(self.default_expiry_hours)

    def to_dict(self) -> dict:
        return {
            "default_expiry_hours": self.default_expiry_hours,
            "email_notifications": self.email_notifications,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserPreferences":
        return cls(
            default_expiry_hours=int(data.get("default_expiry_hours") or ExpiryHours.DEFAULT),
            email_notifications=bool(data.get("email_notifications", True)),
        )


@dataclass
class UserAccount:
    """
    Entity representing an account that owns uploads.

    Credentials live with the authentication service; this entity only
    tracks what the file lifecycle updates.
    """

    user_id: str
    username: str
    email: Optional[str] = None
    upload_stats: UploadStats = field(default_factory=UploadStats)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    def record_upload(self, file_size: int) -> None:
        self.upload_stats.total_files += 1
        self.upload_stats.total_size += file_size

    def record_download(self) -> None:
        self.upload_stats.total_downloads += 1

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "user_id": self.user_id,
            "username": self.username,
            "email": self.email,
            "upload_stats": self.upload_stats.to_dict(),
            "preferences": self.preferences.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserAccount":
        """Create UserAccount from dictionary."""
        return cls(
            user_id=data["user_id"],
            username=data["username"],
            email=data.get("email"),
            upload_stats=UploadStats.from_dict(data.get("upload_stats") or {}),
            preferences=UserPreferences.from_dict(data.get("preferences") or {}),
        )
