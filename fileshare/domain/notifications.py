"""
Notification Contract

Outbound messages about shared files. Delivery is fire-and-forget from the
point of view of the lifecycle: a failed email never undoes an upload.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fileshare.domain.file_storage.value_objects import format_bytes


@dataclass(frozen=True)
class ShareLink:
    """Everything a message needs to describe a shared file."""

    file_id: str
    file_name: str
    file_size: int
    expires_at: datetime
    download_url: str
    download_count: int = 0
    max_downloads: int = 100

    @property
    def file_size_formatted(self) -> str:
        return format_bytes(self.file_size)


class FileNotifier(ABC):
    """Interface for sending share-link emails."""

    @abstractmethod
    def send_file_link(
        self, link: ShareLink, recipient_email: str, sender_email: Optional[str] = None
    ) -> bool:
        """
        Send the download link to a recipient.

        Returns:
            True if the message was accepted for delivery
        """
        pass  # pragma: no cover

    @abstractmethod
    def send_upload_confirmation(self, link: ShareLink, recipient_email: str) -> bool:
        """
        Confirm a successful upload to the sender.

        Returns:
            True if the message was accepted for delivery
        """
        pass  # pragma: no cover
