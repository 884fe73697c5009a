"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .file_service import FileService, sweep_event_publisher
from .sweep_scheduler import RepeatingTimer, SchedulerState, SweepScheduler

__all__ = [
    "DependencyContainer",
    "DependencyNotFoundError",
    "EventPublisher",
    "FileService",
    "RepeatingTimer",
    "SchedulerState",
    "SweepScheduler",
    "sweep_event_publisher",
]
