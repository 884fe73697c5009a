"""
Notification Event Handler

Sends the emails an upload asks for. Delivery failures are logged; the
upload has already succeeded by the time this handler runs.
"""

import logging

from fileshare.domain.events import DomainEvent, FileUploadedEvent
from fileshare.domain.notifications import FileNotifier

logger = logging.getLogger(__name__)


class NotificationEventHandler:
    """Sends the share link to the receiver and a confirmation to the sender."""

    def __init__(self, notifier: FileNotifier):
        self.notifier = notifier

    def handle(self, event: DomainEvent) -> None:
        if isinstance(event, FileUploadedEvent):
            self._handle_uploaded(event)

    def _handle_uploaded(self, event: FileUploadedEvent) -> None:
        if event.receiver_email:
            self._deliver(
                "share link",
                event.receiver_email,
                lambda: self.notifier.send_file_link(
                    event.link, event.receiver_email, event.sender_email
                ),
            )

        if event.sender_email and event.notify_sender:
            self._deliver(
                "upload confirmation",
                event.sender_email,
                lambda: self.notifier.send_upload_confirmation(event.link, event.sender_email),
            )

    def _deliver(self, kind: str, recipient: str, send) -> None:
        try:
            if not send():
                logger.warning(f"{kind.capitalize()} email to {recipient} was not sent")
        except Exception as e:
            logger.error(f"Error sending {kind} email to {recipient}: {e}", exc_info=True)
