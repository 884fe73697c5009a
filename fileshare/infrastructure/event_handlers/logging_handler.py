"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from fileshare.domain.events import (
    DomainEvent,
    FileDeletedEvent,
    FileDownloadedEvent,
    FileUploadedEvent,
    OrphansReconciledEvent,
    SweepCompletedEvent,
)


class LoggingEventHandler:
    """
    Subscribes to domain events and logs them at an appropriate level.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, FileUploadedEvent):
                self._handle_uploaded(event)
            elif isinstance(event, FileDownloadedEvent):
                self._handle_downloaded(event)
            elif isinstance(event, FileDeletedEvent):
                self._handle_deleted(event)
            elif isinstance(event, SweepCompletedEvent):
                self._handle_sweep(event)
            elif isinstance(event, OrphansReconciledEvent):
                self._handle_reconcile(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            # Log handler errors but don't fail the operation
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_uploaded(self, event: FileUploadedEvent) -> None:
        self.logger.info(
            f"File uploaded: file_id={event.aggregate_id}, name={event.link.file_name}, "
            f"size={event.link.file_size} bytes, owner={event.owner_id or 'anonymous'}, "
            f"expires_at={event.link.expires_at.isoformat()}"
        )

    def _handle_downloaded(self, event: FileDownloadedEvent) -> None:
        self.logger.info(
            f"File downloaded: file_id={event.aggregate_id}, "
            f"count={event.download_count}, ip={event.ip_address}"
        )

    def _handle_deleted(self, event: FileDeletedEvent) -> None:
        self.logger.info(
            f"File deleted: file_id={event.aggregate_id}, requested_by={event.requested_by}"
        )

    def _handle_sweep(self, event: SweepCompletedEvent) -> None:
        stats = event.stats
        log = self.logger.warning if stats.failed else self.logger.info
        log(
            f"Sweep pass: examined={stats.examined}, deleted={stats.deleted}, "
            f"failed={stats.failed}"
        )

    def _handle_reconcile(self, event: OrphansReconciledEvent) -> None:
        stats = event.stats
        log = self.logger.warning if stats.failed else self.logger.info
        log(
            f"Orphan reconciliation: found={stats.found}, deleted={stats.deleted}, "
            f"failed={stats.failed}"
        )
