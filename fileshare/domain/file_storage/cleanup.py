"""
File Storage Cleanup

Garbage collection passes over the metadata repository and the blob store:
the expired-file sweep and the orphaned-blob reconciliation.
"""

import logging
from datetime import datetime
from pathlib import PurePosixPath
from typing import Optional

from fileshare.domain.clock import Clock, utc_now
from fileshare.domain.errors import TransientIOError

from . import lifecycle
from .entities import FileRecord
from .repositories import FileRecordRepository
from .storage_repository import IBlobStorageRepository
from .value_objects import ReconcileStats, SweepStats

logger = logging.getLogger(__name__)

DEFAULT_PARTIAL_GRACE_SECONDS = 3600


def _normalize(path: str) -> str:
    return str(PurePosixPath(path.replace("\\", "/")))


class ExpiredFileSweeper:
    """
    One pass of expired-file garbage collection.

    Candidates come from ``find_expired``, which matches either the cached
    flag or a past expiry timestamp; only candidates whose timestamp has
    actually lapsed are swept. Each one is deleted blob first,
    then metadata. A failure on one record is counted and the pass continues;
    the record stays in place and is picked up by the next pass.
    """

    def __init__(
        self,
        record_repository: FileRecordRepository,
        storage_repository: IBlobStorageRepository,
        clock: Clock = utc_now,
    ):
        self.record_repo = record_repository
        self.storage_repo = storage_repository
        self.clock = clock

    def run_once(self, now: Optional[datetime] = None) -> SweepStats:
        """
        Run a single sweep pass.

        Args:
            now: Reference time, the injected clock when None

        Returns:
            SweepStats with examined, deleted and failed counts
        """
        now = now or self.clock()
        stats = SweepStats()

        try:
            candidates = self.record_repo.find_expired(now)
        except Exception as e:
            error_msg = f"Error querying expired records: {e}"
            logger.error(error_msg, exc_info=True)
            stats.errors.append(error_msg)
            return stats

        for record in candidates:
            if not lifecycle.is_sweepable(record, now):
                continue

            stats.examined += 1
            try:
                self._delete_record(record)
                stats.deleted += 1
            except TransientIOError as e:
                stats.failed += 1
                stats.errors.append(str(e))
                logger.warning(str(e))

        logger.info(
            f"Sweep completed - Examined: {stats.examined}, "
            f"Deleted: {stats.deleted}, Failed: {stats.failed}"
        )
        return stats

    def _delete_record(self, record: FileRecord) -> None:
        try:
            self.storage_repo.delete(record.storage_path)
            self.record_repo.delete(record.file_id)
        except Exception as e:
            raise TransientIOError(
                f"Error cleaning up file {record.file_id} ({record.storage_path}): {e}", e
            )
        logger.debug(f"Swept expired file {record.file_id}")


class OrphanReconciler:
    """
    Removes blobs that no metadata record references.

    Blob paths are listed before record paths, so an upload that lands
    between the two listings is seen as referenced. Temporary files of
    interrupted saves are removed once older than ``partial_grace_seconds``.
    """

    def __init__(
        self,
        record_repository: FileRecordRepository,
        storage_repository: IBlobStorageRepository,
        partial_grace_seconds: float = DEFAULT_PARTIAL_GRACE_SECONDS,
    ):
        self.record_repo = record_repository
        self.storage_repo = storage_repository
        self.partial_grace_seconds = partial_grace_seconds

    def find_orphans(self) -> list:
        """
        List blob paths with no referencing record.

        Returns:
            Sorted list of orphaned blob paths as the blob store reports them
        """
        disk_paths = self.storage_repo.list_paths()
        referenced = {_normalize(path) for path in self.record_repo.list_storage_paths()}
        return sorted(path for path in disk_paths if _normalize(path) not in referenced)

    def reconcile(self) -> ReconcileStats:
        """
        Delete every orphaned blob.

        Returns:
            ReconcileStats with found, deleted and failed counts
        """
        stats = ReconcileStats()
        orphans = self.find_orphans()
        stats.found = len(orphans)

        for path in orphans:
            try:
                self.storage_repo.delete(path)
                stats.deleted += 1
                logger.info(f"Removed orphaned blob: {path}")
            except Exception as e:
                error_msg = f"Error removing orphaned blob {path}: {e}"
                stats.failed += 1
                stats.errors.append(error_msg)
                logger.warning(error_msg)

        try:
            stats.partials_removed = self.storage_repo.remove_stale_partials(
                self.partial_grace_seconds
            )
        except Exception as e:
            error_msg = f"Error removing stale partial uploads: {e}"
            stats.errors.append(error_msg)
            logger.warning(error_msg)

        logger.info(
            f"Reconcile completed - Found: {stats.found}, "
            f"Deleted: {stats.deleted}, Failed: {stats.failed}, "
            f"Partials removed: {stats.partials_removed}"
        )
        return stats
