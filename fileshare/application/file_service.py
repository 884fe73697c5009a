"""
File Application Service

Coordinates the file-sharing use cases: upload, download, deletion, the
owner dashboard, link emails and sweep/reconcile control.
"""

import logging
from typing import Any, BinaryIO, Callable, Dict, Optional, Union

from fileshare.domain.accounts import UserAccount, UserPreferences, UserRepository
from fileshare.domain.clock import Clock, utc_now
from fileshare.domain.errors import (
    ApplicationError,
    ErrorCategory,
    FileGoneError,
    FileRecordNotFoundError,
    ForbiddenError,
)
from fileshare.domain.events import (
    FileDeletedEvent,
    FileDownloadedEvent,
    FileUploadedEvent,
    OrphansReconciledEvent,
    SweepCompletedEvent,
)
from fileshare.domain.file_storage import (
    FileDownload,
    FileManager,
    FileRecord,
    OrphanReconciler,
    ReconcileStats,
    RecordPage,
    RequesterInfo,
    SweepStats,
    UploadMetadata,
)
from fileshare.domain.file_storage import lifecycle
from fileshare.domain.notifications import FileNotifier, ShareLink

from .event_publisher import EventPublisher
from .sweep_scheduler import SweepScheduler

logger = logging.getLogger(__name__)


def sweep_event_publisher(
    publisher: EventPublisher, clock: Clock = utc_now
) -> Callable[[SweepStats], None]:
    """Build a scheduler ``on_pass`` callback that publishes SweepCompletedEvent."""

    def publish(stats: SweepStats) -> None:
        publisher.publish(
            SweepCompletedEvent(aggregate_id="sweeper", occurred_at=clock(), stats=stats)
        )

    return publish


class FileService:
    """
    Application service for shared files.

    Wraps FileManager with the secondary effects of each use case. Owner
    statistics and notifications are best effort: their failures are logged
    and never undo an upload or a recorded download.
    """

    def __init__(
        self,
        file_manager: FileManager,
        scheduler: SweepScheduler,
        reconciler: OrphanReconciler,
        event_publisher: EventPublisher,
        user_repository: Optional[UserRepository] = None,
        notifier: Optional[FileNotifier] = None,
        frontend_url: str = "",
    ):
        """
        Initialize FileService.

        Args:
            file_manager: FileManager domain service
            scheduler: Sweep state machine
            reconciler: Orphaned blob reconciler
            event_publisher: Publisher for domain events
            user_repository: Account store for owner statistics and preferences
            notifier: Email sender for share links
            frontend_url: Public base URL share links point at
        """
        self.file_manager = file_manager
        self.scheduler = scheduler
        self.reconciler = reconciler
        self.event_publisher = event_publisher
        self.user_repository = user_repository
        self.notifier = notifier
        self.frontend_url = frontend_url.rstrip("/")

    @property
    def clock(self) -> Clock:
        return self.file_manager.clock

    def upload_file(
        self,
        content: Union[bytes, BinaryIO],
        metadata: UploadMetadata,
        expiry_hours: Optional[int] = None,
    ) -> FileRecord:
        """
        Store an upload and trigger its notifications.

        A signed-in owner without an account gets one on first upload. When
        no expiry is given, the owner's preferred default is used, then the
        service default.

        Raises:
            InvalidConfigurationError: If expiry_hours is outside [1, 168]
            TransientIOError: If the metadata record could not be saved
        """
        account = self._owner_account(metadata.owner_id)
        if expiry_hours is None and account is not None:
            expiry_hours = account.preferences.default_expiry_hours

        record = self.file_manager.create_file(content, metadata, expiry_hours)

        if record.owner_id is not None:
            self._best_effort(
                f"upload stats for {record.owner_id}",
                lambda: self.user_repository.increment_upload_stats(
                    record.owner_id, record.file_size
                ),
            )

        self.event_publisher.publish(
            FileUploadedEvent(
                aggregate_id=record.file_id,
                occurred_at=record.created_at,
                link=self.share_link(record),
                owner_id=record.owner_id,
                sender_email=record.sender_email,
                receiver_email=record.receiver_email,
                notify_sender=account.preferences.email_notifications if account else True,
            )
        )
        return record

    def get_file_info(self, file_id: str) -> FileRecord:
        """
        Raises:
            FileRecordNotFoundError: If file doesn't exist
            FileGoneError: If the file expired or hit its download limit
        """
        try:
            return self.file_manager.get_file_info(file_id)
        except FileRecordNotFoundError:
            logger.warning(f"File not found: {file_id}")
            raise
        except FileGoneError as e:
            logger.info(f"File {file_id} is gone ({e.reason})")
            raise

    def download_file(self, file_id: str, requester: RequesterInfo) -> FileDownload:
        """
        Record a download and open its content.

        Raises:
            FileRecordNotFoundError: If file doesn't exist
            FileGoneError: If the file expired or hit its download limit
            StorageInconsistencyError: If the blob is missing
        """
        download = self.file_manager.download_file(file_id, requester)
        record = download.record

        if record.owner_id is not None:
            self._best_effort(
                f"download stats for {record.owner_id}",
                lambda: self.user_repository.increment_download_stats(record.owner_id),
            )

        self.event_publisher.publish(
            FileDownloadedEvent(
                aggregate_id=record.file_id,
                occurred_at=self.clock(),
                download_count=record.download_count,
                ip_address=requester.ip_address,
            )
        )
        return download

    def delete_file(self, file_id: str, requesting_owner: Optional[str] = None) -> bool:
        """
        Raises:
            FileRecordNotFoundError: If file doesn't exist
            ForbiddenError: If the requester does not own the file
        """
        try:
            self.file_manager.delete_file(file_id, requesting_owner)
        except ForbiddenError:
            logger.warning(f"Rejected delete of {file_id} by {requesting_owner}")
            raise

        self.event_publisher.publish(
            FileDeletedEvent(
                aggregate_id=file_id, occurred_at=self.clock(), requested_by=requesting_owner
            )
        )
        return True

    def list_user_files(self, owner_id: str, page: int = 1, page_size: int = 10) -> RecordPage:
        return self.file_manager.list_owner_files(owner_id, page, page_size)

    def send_file_link(
        self, file_id: str, recipient_email: str, sender_email: Optional[str] = None
    ) -> bool:
        """
        Email a file's share link.

        Only expiry is checked here; a link to a file at its download limit
        can still be sent.

        Raises:
            FileRecordNotFoundError: If file doesn't exist
            FileGoneError: If the file has expired
            ApplicationError: EMAIL_FAILED if the message was not accepted
        """
        record = self.file_manager.get_record(file_id)
        if lifecycle.is_expired(record, self.clock()):
            raise FileGoneError(f"File has expired: {file_id}")

        if self.notifier is None:
            raise ApplicationError(ErrorCategory.EMAIL_FAILED, "No email notifier configured")

        try:
            sent = self.notifier.send_file_link(
                self.share_link(record), recipient_email, sender_email
            )
        except Exception as e:
            logger.error(f"Error sending link for {file_id}: {e}", exc_info=True)
            raise ApplicationError(ErrorCategory.EMAIL_FAILED, str(e))

        if not sent:
            raise ApplicationError(
                ErrorCategory.EMAIL_FAILED, f"Notifier rejected link email for {file_id}"
            )

        logger.info(f"Sent link for {file_id} to {recipient_email}")
        return True

    def share_link(self, record: FileRecord) -> ShareLink:
        return ShareLink(
            file_id=record.file_id,
            file_name=record.original_name,
            file_size=record.file_size,
            expires_at=record.expires_at,
            download_url=record.download_path(f"{self.frontend_url}/download"),
            download_count=record.download_count,
            max_downloads=record.max_downloads,
        )

    def run_sweep_once(self) -> SweepStats:
        return self.scheduler.run_pass()

    def start_sweeping(self) -> bool:
        return self.scheduler.start()

    def stop_sweeping(self) -> bool:
        return self.scheduler.stop()

    def reconcile_orphans(self) -> ReconcileStats:
        stats = self.reconciler.reconcile()
        self.event_publisher.publish(
            OrphansReconciledEvent(
                aggregate_id="reconciler", occurred_at=self.clock(), stats=stats
            )
        )
        return stats

    def get_storage_stats(self) -> Dict[str, Any]:
        """
        Combined metadata, disk and scheduler status.

        Returns:
            Dictionary with ``files``, ``disk`` and ``scheduler`` sections
        """
        stats = self.file_manager.get_storage_stats()
        disk = self.file_manager.storage_repo.get_disk_usage()
        last = self.scheduler.last_stats

        return {
            "files": stats.to_dict(),
            "disk": disk.to_dict(),
            "scheduler": {
                "state": self.scheduler.state.value,
                "interval_seconds": self.scheduler.interval_seconds,
                "last_pass": last.to_dict() if last else None,
            },
        }

    def get_account(self, owner_id: str) -> UserAccount:
        """
        Load the caller's account, creating an empty one on first use.

        Raises:
            ApplicationError: SYSTEM_ERROR if no account store is configured
                or the account cannot be loaded
        """
        if self.user_repository is None:
            raise ApplicationError(ErrorCategory.SYSTEM_ERROR, "No account store configured")

        self.user_repository.create_if_absent(UserAccount(user_id=owner_id, username=owner_id))
        account = self.user_repository.get(owner_id)
        if account is None:
            raise ApplicationError(ErrorCategory.SYSTEM_ERROR, f"Account {owner_id} unavailable")
        return account

    def update_preferences(
        self,
        owner_id: str,
        default_expiry_hours: Optional[int] = None,
        email_notifications: Optional[bool] = None,
    ) -> UserAccount:
        """
        Change the caller's upload defaults. Omitted fields keep their value.

        Raises:
            InvalidConfigurationError: If default_expiry_hours is outside [1, 168]
            ApplicationError: SYSTEM_ERROR if the account cannot be updated
        """
        current = self.get_account(owner_id).preferences
        preferences = UserPreferences(
            default_expiry_hours=(
                current.default_expiry_hours
                if default_expiry_hours is None
                else default_expiry_hours
            ),
            email_notifications=(
                current.email_notifications if email_notifications is None else email_notifications
            ),
        )

        if not self.user_repository.update_preferences(owner_id, preferences):
            raise ApplicationError(
                ErrorCategory.SYSTEM_ERROR, f"Could not update preferences for {owner_id}"
            )
        logger.info(f"Updated preferences for {owner_id}")
        return self.get_account(owner_id)

    def _owner_account(self, owner_id: Optional[str]) -> Optional[UserAccount]:
        if owner_id is None or self.user_repository is None:
            return None
        try:
            if self.user_repository.create_if_absent(
                UserAccount(user_id=owner_id, username=owner_id)
            ):
                logger.info(f"Created account for {owner_id}")
            return self.user_repository.get(owner_id)
        except Exception as e:
            logger.warning(f"Could not load account for {owner_id}: {e}")
            return None

    def _best_effort(self, description: str, action: Callable[[], Any]) -> None:
        if self.user_repository is None:
            return
        try:
            if not action():
                logger.warning(f"No account updated for {description}")
        except Exception as e:
            logger.error(f"Failed to update {description}: {e}", exc_info=True)
