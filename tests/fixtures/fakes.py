"""
Test doubles for time, timers and email delivery.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from fileshare.domain.notifications import FileNotifier, ShareLink

DEFAULT_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or DEFAULT_NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ManualTimer:
    """Timer that fires only when the test calls ``fire``."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.callback()


class ManualTimerFactory:
    """Timer factory remembering every timer it built."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> ManualTimer:
        return self.timers[-1]


class RecordingNotifier(FileNotifier):
    """FileNotifier that records messages instead of sending them."""

    def __init__(self, accept: bool = True, error: Optional[Exception] = None):
        self.accept = accept
        self.error = error
        self.links: List[tuple] = []
        self.confirmations: List[tuple] = []

    def send_file_link(
        self, link: ShareLink, recipient_email: str, sender_email: Optional[str] = None
    ) -> bool:
        if self.error is not None:
            raise self.error
        self.links.append((link, recipient_email, sender_email))
        return self.accept

    def send_upload_confirmation(self, link: ShareLink, recipient_email: str) -> bool:
        if self.error is not None:
            raise self.error
        self.confirmations.append((link, recipient_email))
        return self.accept
