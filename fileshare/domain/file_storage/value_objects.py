"""
File Storage Value Objects

Immutable value objects for type safety and validation.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from fileshare.domain.clock import ensure_utc
from fileshare.domain.errors import InvalidConfigurationError


def format_bytes(size: int) -> str:
    """
    Format a byte count for display.

    Args:
        size: Size in bytes

    Returns:
        Human readable size, e.g. "1.5 MB"
    """
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


@dataclass(frozen=True)
class ExpiryHours:
    """
    Value object representing a validated expiry horizon in hours.

    Only whole hours between 1 and 168 (seven days) are accepted.
    """

    value: int

    MIN = 1
    MAX = 168
    DEFAULT = 24

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidConfigurationError(
                f"Expiry hours must be an integer, got {self.value!r}"
            )
        if not self.MIN <= self.value <= self.MAX:
            raise InvalidConfigurationError(
                f"Expiry hours must be between {self.MIN} and {self.MAX}, got {self.value}"
            )

    @classmethod
    def default(cls) -> "ExpiryHours":
        return cls(cls.DEFAULT)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class AccessLogEntry:
    """One successful retrieval: who asked and when."""

    ip_address: Optional[str]
    user_agent: Optional[str]
    accessed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "accessed_at": self.accessed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccessLogEntry":
        return cls(
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            accessed_at=ensure_utc(datetime.fromisoformat(data["accessed_at"])),
        )


@dataclass(frozen=True)
class RequesterInfo:
    """Origin address and client signature of a download request."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class UploadMetadata:
    """
    Caller-supplied description of an upload.

    Attributes:
        original_name: Display name as sent by the client
        mime_type: Content-type tag
        owner_id: Uploading user, None for anonymous uploads
        max_downloads: Download cap for the share link
        sender_email: Address for the upload confirmation
        receiver_email: Address the share link is sent to
    """

    original_name: str
    mime_type: str = "application/octet-stream"
    owner_id: Optional[str] = None
    max_downloads: int = 100
    sender_email: Optional[str] = None
    receiver_email: Optional[str] = None

    def __post_init__(self):
        if not self.original_name or not self.original_name.strip():
            raise ValueError("original_name is required")
        if self.max_downloads < 1:
            raise InvalidConfigurationError(
                f"max_downloads must be at least 1, got {self.max_downloads}"
            )


class FileAvailability(Enum):
    """Whether a record may currently be served."""

    AVAILABLE = "available"
    EXPIRED = "expired"
    LIMIT_REACHED = "limit_reached"

    def is_servable(self) -> bool:
        return self is FileAvailability.AVAILABLE


class AccessResult(Enum):
    """Outcome of the atomic record-access operation."""

    RECORDED = "recorded"
    LIMIT_REACHED = "limit_reached"
    NOT_FOUND = "not_found"


@dataclass
class SweepStats:
    """Counts reported by one sweep pass."""

    examined: int = 0
    deleted: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "examined": self.examined,
            "deleted": self.deleted,
            "failed": self.failed,
            "errors": list(self.errors),
        }


@dataclass
class ReconcileStats:
    """Counts reported by one orphan reconciliation."""

    found: int = 0
    deleted: int = 0
    failed: int = 0
    partials_removed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "deleted": self.deleted,
            "failed": self.failed,
            "partials_removed": self.partials_removed,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class DiskUsage:
    """Blob store footprint."""

    total_size: int
    file_count: int

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.total_size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_size": self.total_size,
            "file_count": self.file_count,
            "formatted_size": self.formatted_size,
        }


@dataclass(frozen=True)
class StorageStats:
    """Metadata-side summary of active and expired files."""

    total_files: int
    active_files: int
    expired_files: int
    total_size: int
    expired_size: int
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "active_files": self.active_files,
            "expired_files": self.expired_files,
            "total_size": self.total_size,
            "expired_size": self.expired_size,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class RecordPage:
    """One page of an owner's records, newest first."""

    items: list
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def pagination_dict(self) -> Dict[str, Any]:
        return {
            "current_page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "total_files": self.total,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }
