"""
Event Handlers

Infrastructure subscribers for domain events.
"""

import logging
from typing import Optional

from fileshare.application.event_publisher import EventPublisher
from fileshare.domain.events import DomainEvent, FileUploadedEvent
from fileshare.domain.notifications import FileNotifier

from .logging_handler import LoggingEventHandler
from .notification_handler import NotificationEventHandler

__all__ = [
    "LoggingEventHandler",
    "NotificationEventHandler",
    "register_event_handlers",
]


def register_event_handlers(
    publisher: EventPublisher, notifier: Optional[FileNotifier] = None
) -> None:
    """
    Subscribe the infrastructure handlers to a publisher.

    Args:
        publisher: EventPublisher to subscribe to
        notifier: Email sender; upload emails are skipped when None
    """
    publisher.subscribe(DomainEvent, LoggingEventHandler(logging.getLogger("fileshare.events")).handle)

    if notifier is not None:
        publisher.subscribe(FileUploadedEvent, NotificationEventHandler(notifier).handle)
