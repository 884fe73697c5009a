"""
File Storage Repositories

Repository interface for file metadata persistence.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import FileRecord
from .value_objects import AccessLogEntry, AccessResult, RecordPage


class FileRecordRepository(ABC):
    """
    Abstract repository interface for file metadata persistence.

    Every mutation targets exactly one record; callers never rely on a
    multi-record transaction.
    """

    @abstractmethod
    def save(self, record: FileRecord) -> bool:
        """
        Create or replace a record.

        Args:
            record: FileRecord to save

        Returns:
            True if successful, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, file_id: str) -> Optional[FileRecord]:
        """
        Retrieve a record by its public identifier.

        Args:
            file_id: Opaque file identifier

        Returns:
            FileRecord if found, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_by_owner(self, owner_id: str, page: int = 1, page_size: int = 10) -> RecordPage:
        """
        Page through one owner's records, newest first.

        Args:
            owner_id: Owning user identifier
            page: 1-based page number
            page_size: Records per page

        Returns:
            RecordPage with the requested slice and the owner's total count
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_expired(self, now: datetime) -> List[FileRecord]:
        """
        Find records eligible for sweeping.

        Matches records whose cached flag is set OR whose expiry timestamp is
        before ``now``, so records that lapsed without being re-saved are
        still found.

        Args:
            now: Reference time

        Returns:
            List of matching records
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, file_id: str) -> bool:
        """
        Delete a record.

        Args:
            file_id: Opaque file identifier

        Returns:
            True if a record was deleted, False if none existed
        """
        pass  # pragma: no cover

    @abstractmethod
    def record_access(self, file_id: str, entry: AccessLogEntry, now: datetime) -> AccessResult:
        """
        Atomically register one successful retrieval.

        Increments the download counter by one, appends ``entry`` to the
        access log and recomputes the expired flag in a single save. The
        increment is refused once the counter has reached the record's cap.

        Args:
            file_id: Opaque file identifier
            entry: Access log entry to append
            now: Reference time for the flag

        Returns:
            AccessResult describing what happened
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_storage_paths(self) -> List[str]:
        """
        List the blob path referenced by every record.

        Returns:
            Storage paths, one per record
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_all(self) -> List[FileRecord]:
        """
        Load every record.

        Returns:
            All records currently stored
        """
        pass  # pragma: no cover

    def count(self) -> int:
        """Number of stored records."""
        return len(self.list_storage_paths())
