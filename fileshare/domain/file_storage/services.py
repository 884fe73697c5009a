"""
File Storage Services

Domain service for the expiring-file lifecycle: upload, gated retrieval,
access recording and owner deletion.
"""

import io
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, Optional, Union

from fileshare.domain.clock import Clock, utc_now
from fileshare.domain.errors import (
    FileGoneError,
    FileRecordNotFoundError,
    ForbiddenError,
    StorageInconsistencyError,
    TransientIOError,
)

from . import lifecycle
from .entities import FileRecord
from .repositories import FileRecordRepository
from .storage_repository import IBlobStorageRepository
from .value_objects import (
    AccessLogEntry,
    AccessResult,
    ExpiryHours,
    FileAvailability,
    RecordPage,
    RequesterInfo,
    StorageStats,
    UploadMetadata,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass
class FileDownload:
    """A recorded download: the updated record and an open content stream."""

    record: FileRecord
    stream: BinaryIO


class FileManager:
    """
    Domain service for managing shared files.

    Coordinates the metadata repository and the blob store. Uploads write the
    blob first and the record second; deletions remove the blob first and the
    record second. Neither pair is atomic.
    """

    def __init__(
        self,
        record_repository: FileRecordRepository,
        storage_repository: IBlobStorageRepository,
        clock: Clock = utc_now,
        default_expiry_hours: int = ExpiryHours.DEFAULT,
        access_log_limit: Optional[int] = None,
    ):
        """
        Initialize FileManager with repositories.

        Args:
            record_repository: Repository for file metadata persistence
            storage_repository: Blob store for file content
            clock: Source of the current time
            default_expiry_hours: Horizon used when an upload names none
            access_log_limit: Newest access entries kept per record, None for all
        """
        self.record_repo = record_repository
        self.storage_repo = storage_repository
        self.clock = clock
        self.default_expiry = ExpiryHours(default_expiry_hours)
        self.access_log_limit = access_log_limit

    def create_file(
        self,
        content: Union[bytes, BinaryIO],
        metadata: UploadMetadata,
        expiry_hours: Optional[int] = None,
    ) -> FileRecord:
        """
        Store an upload and create its record.

        Args:
            content: Raw bytes or a binary stream
            metadata: Upload description
            expiry_hours: Expiry horizon in hours, default horizon when None

        Returns:
            The saved FileRecord

        Raises:
            InvalidConfigurationError: If expiry_hours is outside [1, 168]
            TransientIOError: If the blob or the record could not be saved
        """
        hours = self.default_expiry if expiry_hours is None else ExpiryHours(expiry_hours)
        stream = io.BytesIO(content) if isinstance(content, (bytes, bytearray)) else content

        storage_path = self.storage_repo.generate_path(metadata.original_name)
        try:
            stored = self.storage_repo.save(storage_path, stream)
        except OSError as e:
            raise TransientIOError(f"Failed to store blob {storage_path}: {e}", e)
        if not stored:
            self._discard_blob(storage_path)
            raise TransientIOError(f"Blob store did not accept {storage_path}")

        file_size = self.storage_repo.get_size(storage_path) or 0

        now = self.clock()
        record = FileRecord.create(metadata, storage_path, file_size, now, hours)
        record.refresh_expired_flag(now)

        try:
            saved = self.record_repo.save(record)
        except Exception as e:
            self._discard_blob(storage_path)
            raise TransientIOError(f"Failed to save metadata for {storage_path}: {e}", e)

        if not saved:
            self._discard_blob(storage_path)
            raise TransientIOError(f"Failed to save metadata for {storage_path}")

        logger.info(
            f"Stored file {record.file_id} ({record.original_name}, {record.file_size} bytes), "
            f"expires at {record.expires_at.isoformat()}"
        )
        return record

    def get_record(self, file_id: str) -> FileRecord:
        """
        Retrieve a record regardless of its lifecycle state.

        Raises:
            FileRecordNotFoundError: If no record exists
        """
        record = self.record_repo.get(file_id)
        if record is None:
            raise FileRecordNotFoundError(f"File not found: {file_id}")
        return record

    def get_file_info(self, file_id: str) -> FileRecord:
        """
        Retrieve a record that may currently be served.

        Raises:
            FileRecordNotFoundError: If no record exists
            FileGoneError: If the record expired or hit its download limit
        """
        record = self.get_record(file_id)
        self._ensure_servable(record)
        return record

    def download_file(self, file_id: str, requester: RequesterInfo) -> FileDownload:
        """
        Gate, record and open one download.

        The gate is check-then-act: expiry and limit are checked on the loaded
        record, then the repository's atomic access operation re-checks the
        limit while incrementing.

        Args:
            file_id: Opaque file identifier
            requester: Origin address and client signature

        Returns:
            FileDownload with the updated record and an open stream

        Raises:
            FileRecordNotFoundError: If no record exists
            FileGoneError: If the record expired or hit its download limit
            StorageInconsistencyError: If the record's blob is missing
        """
        record = self.get_file_info(file_id)

        stream = self.storage_repo.get(record.storage_path)
        if stream is None:
            logger.error(f"Record {file_id} references missing blob {record.storage_path}")
            raise StorageInconsistencyError(
                f"Blob missing for file {file_id}: {record.storage_path}"
            )

        now = self.clock()
        entry = AccessLogEntry(
            ip_address=requester.ip_address,
            user_agent=requester.user_agent,
            accessed_at=now,
        )
        result = self.record_repo.record_access(file_id, entry, now)

        if result is not AccessResult.RECORDED:
            stream.close()
            if result is AccessResult.NOT_FOUND:
                raise FileRecordNotFoundError(f"File not found: {file_id}")
            raise FileGoneError(
                f"Download limit reached for file {file_id}",
                reason=FileGoneError.REASON_LIMIT_REACHED,
            )

        record.apply_access(entry, now, self.access_log_limit)
        return FileDownload(record=record, stream=stream)

    def delete_file(self, file_id: str, requesting_owner: Optional[str] = None) -> bool:
        """
        Delete a file on behalf of a user.

        Owned records may only be deleted by their owner; anonymous records
        may be deleted by any requester.

        Raises:
            FileRecordNotFoundError: If no record exists (including a second delete)
            ForbiddenError: If the requester does not own the record
        """
        record = self.get_record(file_id)

        if record.owner_id is not None and record.owner_id != requesting_owner:
            raise ForbiddenError(
                f"User {requesting_owner} may not delete file {file_id}"
            )

        self.remove(record)
        logger.info(f"Deleted file {file_id} on request of {requesting_owner}")
        return True

    def remove(self, record: FileRecord) -> bool:
        """
        Remove a record's blob, then the record.

        A blob that is already gone is fine. Storage errors propagate so the
        record stays in place for a later retry.

        Returns:
            True if a metadata record was deleted
        """
        self.storage_repo.delete(record.storage_path)
        return self.record_repo.delete(record.file_id)

    def list_owner_files(self, owner_id: str, page: int = 1, page_size: int = 10) -> RecordPage:
        """
        Page through an owner's uploads, newest first.

        Args:
            owner_id: Owning user
            page: 1-based page number (values below 1 are treated as 1)
            page_size: Records per page, clamped to [1, 100]
        """
        page = max(1, int(page))
        page_size = min(max(1, int(page_size)), MAX_PAGE_SIZE)
        return self.record_repo.find_by_owner(owner_id, page, page_size)

    def time_remaining(self, record: FileRecord) -> timedelta:
        return lifecycle.time_remaining(record, self.clock())

    def availability(self, record: FileRecord) -> FileAvailability:
        return lifecycle.availability(record, self.clock())

    def get_storage_stats(self) -> StorageStats:
        """
        Summarize stored files by lifecycle state.

        Returns:
            StorageStats computed from the metadata repository
        """
        now = self.clock()
        records = self.record_repo.list_all()
        expired = [r for r in records if lifecycle.is_sweepable(r, now)]

        return StorageStats(
            total_files=len(records),
            active_files=len(records) - len(expired),
            expired_files=len(expired),
            total_size=sum(r.file_size for r in records),
            expired_size=sum(r.file_size for r in expired),
            generated_at=now,
        )

    def _ensure_servable(self, record: FileRecord) -> None:
        state = lifecycle.availability(record, self.clock())
        if state is FileAvailability.EXPIRED:
            raise FileGoneError(
                f"File has expired: {record.file_id}", reason=FileGoneError.REASON_EXPIRED
            )
        if state is FileAvailability.LIMIT_REACHED:
            raise FileGoneError(
                f"Download limit reached for file {record.file_id}",
                reason=FileGoneError.REASON_LIMIT_REACHED,
            )

    def _discard_blob(self, storage_path: str) -> None:
        try:
            self.storage_repo.delete(storage_path)
        except Exception as e:
            # Left for the reconciler
            logger.warning(f"Could not discard blob {storage_path} after failed save: {e}")
