"""
File Storage Entities

Domain entities for shared file management.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import List, Optional, Union

from fileshare.domain.clock import ensure_utc

from . import lifecycle
from .value_objects import AccessLogEntry, ExpiryHours, UploadMetadata, format_bytes


@dataclass
class FileRecord:
    """
    Entity representing one shared file and its lifecycle state.

    ``file_id`` is the only identifier that leaves the service; the storage
    path is internal. ``is_expired`` is a cached copy of the expiry predicate
    and is refreshed on every save.
    """

    file_id: str
    original_name: str
    stored_name: str
    storage_path: str
    mime_type: str
    file_size: int
    created_at: datetime
    expires_at: datetime
    download_count: int = 0
    max_downloads: int = 100
    is_expired: bool = False
    owner_id: Optional[str] = None
    sender_email: Optional[str] = None
    receiver_email: Optional[str] = None
    access_log: List[AccessLogEntry] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        metadata: UploadMetadata,
        storage_path: str,
        file_size: int,
        created_at: datetime,
        expiry_hours: Union[int, ExpiryHours] = ExpiryHours.DEFAULT,
    ) -> "FileRecord":
        """
        Factory method to create a new record for a freshly written blob.

        Args:
            metadata: Caller-supplied upload description
            storage_path: Blob store path the content was written to
            file_size: Content size in bytes
            created_at: Creation timestamp
            expiry_hours: Expiry horizon in hours (default: 24)

        Returns:
            New FileRecord instance

        Raises:
            InvalidConfigurationError: If expiry_hours is out of range
        """
        expires_at = lifecycle.compute_expiry(created_at, expiry_hours)

        return cls(
            file_id=str(uuid.uuid4()),
            original_name=metadata.original_name,
            stored_name=PurePosixPath(storage_path).name,
            storage_path=storage_path,
            mime_type=metadata.mime_type,
            file_size=file_size,
            created_at=created_at,
            expires_at=expires_at,
            max_downloads=metadata.max_downloads,
            owner_id=metadata.owner_id,
            sender_email=metadata.sender_email,
            receiver_email=metadata.receiver_email,
        )

    def refresh_expired_flag(self, now: datetime) -> bool:
        """Recompute the cached expired flag and return it."""
        self.is_expired = lifecycle.is_expired(self, now)
        return self.is_expired

    def apply_access(
        self, entry: AccessLogEntry, now: datetime, log_limit: Optional[int] = None
    ) -> None:
        """
        Apply one successful retrieval in memory.

        Increments the counter by one, appends the log entry (keeping at most
        ``log_limit`` newest entries when set) and refreshes the flag.
        """
        self.download_count += 1
        self.access_log.append(entry)
        if log_limit and len(self.access_log) > log_limit:
            self.access_log = self.access_log[-log_limit:]
        self.refresh_expired_flag(now)

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        """Anonymous records have no owner and match nobody."""
        return self.owner_id is not None and self.owner_id == user_id

    @property
    def file_extension(self) -> str:
        suffix = PurePosixPath(self.original_name).suffix
        return suffix[1:].lower() if suffix else ""

    @property
    def file_size_formatted(self) -> str:
        return format_bytes(self.file_size)

    def download_path(self, base_url: str = "/download") -> str:
        """
        Build the public share link for this record.

        Args:
            base_url: Frontend URL prefix for download pages

        Returns:
            Share link using the opaque file id
        """
        return f"{base_url.rstrip('/')}/{self.file_id}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "file_id": self.file_id,
            "original_name": self.original_name,
            "stored_name": self.stored_name,
            "storage_path": self.storage_path,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "download_count": self.download_count,
            "max_downloads": self.max_downloads,
            "is_expired": self.is_expired,
            "owner_id": self.owner_id,
            "sender_email": self.sender_email,
            "receiver_email": self.receiver_email,
            "access_log": [entry.to_dict() for entry in self.access_log],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileRecord":
        """Create FileRecord from dictionary."""
        return cls(
            file_id=data["file_id"],
            original_name=data["original_name"],
            stored_name=data["stored_name"],
            storage_path=data["storage_path"],
            mime_type=data.get("mime_type") or "application/octet-stream",
            file_size=int(data.get("file_size") or 0),
            created_at=ensure_utc(datetime.fromisoformat(data["created_at"])),
            expires_at=ensure_utc(datetime.fromisoformat(data["expires_at"])),
            download_count=int(data.get("download_count") or 0),
            max_downloads=int(data.get("max_downloads") or 100),
            is_expired=bool(data.get("is_expired", False)),
            owner_id=data.get("owner_id"),
            sender_email=data.get("sender_email"),
            receiver_email=data.get("receiver_email"),
            access_log=[
                AccessLogEntry.from_dict(entry) for entry in data.get("access_log") or []
            ],
        )
