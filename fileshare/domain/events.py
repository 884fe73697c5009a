"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging, email notifications) from core
business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .file_storage.value_objects import ReconcileStats, SweepStats
from .notifications import ShareLink


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the aggregate that generated the event (e.g., file_id)
        occurred_at: Timestamp when the event occurred
    """

    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class FileUploadedEvent(DomainEvent):
    """
    Event emitted after a blob and its record have both been written.

    Attributes:
        aggregate_id: File ID
        occurred_at: Upload time
        link: Share link details for notifications
        owner_id: Uploading user, None for anonymous uploads
        sender_email: Address to confirm the upload to
        receiver_email: Address to send the link to
        notify_sender: Whether the uploader wants the confirmation email
    """

    link: ShareLink
    owner_id: Optional[str] = None
    sender_email: Optional[str] = None
    receiver_email: Optional[str] = None
    notify_sender: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update(
            {
                "file_name": self.link.file_name,
                "file_size": self.link.file_size,
                "expires_at": self.link.expires_at.isoformat(),
                "owner_id": self.owner_id,
            }
        )
        return base_dict


@dataclass(frozen=True)
class FileDownloadedEvent(DomainEvent):
    """
    Event emitted after a download was recorded.

    Attributes:
        aggregate_id: File ID
        occurred_at: Access time
        download_count: Counter value after the increment
        ip_address: Origin address of the request
    """

    download_count: int
    ip_address: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update(
            {"download_count": self.download_count, "ip_address": self.ip_address}
        )
        return base_dict


@dataclass(frozen=True)
class FileDeletedEvent(DomainEvent):
    """
    Event emitted after an explicit owner deletion.

    Attributes:
        aggregate_id: File ID
        occurred_at: Deletion time
        requested_by: User that asked for the deletion
    """

    requested_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict["requested_by"] = self.requested_by
        return base_dict


@dataclass(frozen=True)
class SweepCompletedEvent(DomainEvent):
    """
    Event emitted after every sweep pass.

    Attributes:
        aggregate_id: Constant "sweeper"
        occurred_at: When the pass finished
        stats: Pass counts
    """

    stats: SweepStats

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update(self.stats.to_dict())
        return base_dict


@dataclass(frozen=True)
class OrphansReconciledEvent(DomainEvent):
    """
    Event emitted after an orphan reconciliation.

    Attributes:
        aggregate_id: Constant "reconciler"
        occurred_at: When the reconciliation finished
        stats: Reconciliation counts
    """

    stats: ReconcileStats

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update(self.stats.to_dict())
        return base_dict
