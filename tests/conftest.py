"""
Shared pytest fixtures and configuration for the FileShare backend test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A frozen clock shared by every service under test
- In-memory repositories and the services wired on top of them
"""

import pytest
from hypothesis import HealthCheck, Phase, settings

from fileshare.application.event_publisher import EventPublisher
from fileshare.application.file_service import FileService, sweep_event_publisher
from fileshare.application.sweep_scheduler import SweepScheduler
from fileshare.domain.file_storage import (
    ExpiredFileSweeper,
    FileManager,
    OrphanReconciler,
    UploadMetadata,
)
from tests.fixtures import (
    FrozenClock,
    InMemoryBlobStorage,
    InMemoryFileRecordRepository,
    InMemoryUserRepository,
    ManualTimerFactory,
    RecordingNotifier,
)

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep uploads and in-process sweeping out of the developer's setup."""
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("SWEEP_MODE", "off")
    monkeypatch.delenv("SENDGRID_API_KEY", raising=False)


# =============================================================================
# Time
# =============================================================================

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# =============================================================================
# Repositories
# =============================================================================

@pytest.fixture
def record_repository(clock) -> InMemoryFileRecordRepository:
    return InMemoryFileRecordRepository(clock=clock)


@pytest.fixture
def blob_storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def file_manager(record_repository, blob_storage, clock) -> FileManager:
    return FileManager(record_repository, blob_storage, clock=clock)


@pytest.fixture
def sweeper(record_repository, blob_storage, clock) -> ExpiredFileSweeper:
    return ExpiredFileSweeper(record_repository, blob_storage, clock=clock)


@pytest.fixture
def reconciler(record_repository, blob_storage) -> OrphanReconciler:
    return OrphanReconciler(record_repository, blob_storage)


@pytest.fixture
def timers() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def event_publisher() -> EventPublisher:
    return EventPublisher()


@pytest.fixture
def scheduler(sweeper, timers, event_publisher, clock) -> SweepScheduler:
    return SweepScheduler(
        sweeper,
        interval_seconds=60,
        timer_factory=timers,
        on_pass=sweep_event_publisher(event_publisher, clock),
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def file_service(
    file_manager, scheduler, reconciler, event_publisher, user_repository, notifier
) -> FileService:
    return FileService(
        file_manager,
        scheduler,
        reconciler,
        event_publisher,
        user_repository=user_repository,
        notifier=notifier,
        frontend_url="https://share.example.com",
    )


@pytest.fixture
def sample_metadata() -> UploadMetadata:
    return UploadMetadata(original_name="report.pdf", mime_type="application/pdf")
