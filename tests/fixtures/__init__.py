"""
Test fixtures: in-memory repositories, fakes and entity builders.
"""

from .domain_fixtures import make_record
from .fakes import DEFAULT_NOW, FrozenClock, ManualTimer, ManualTimerFactory, RecordingNotifier
from .mock_repositories import (
    InMemoryBlobStorage,
    InMemoryFileRecordRepository,
    InMemoryUserRepository,
)

__all__ = [
    "DEFAULT_NOW",
    "FrozenClock",
    "InMemoryBlobStorage",
    "InMemoryFileRecordRepository",
    "InMemoryUserRepository",
    "ManualTimer",
    "ManualTimerFactory",
    "RecordingNotifier",
    "make_record",
]
