"""
File Storage Domain

Handles expiring shared files: lifecycle policy, download gating, sweep
and orphan reconciliation.
"""

from .cleanup import ExpiredFileSweeper, OrphanReconciler
from .entities import FileRecord
from .repositories import FileRecordRepository
from .services import FileDownload, FileManager
from .storage_repository import IBlobStorageRepository
from .value_objects import (
    AccessLogEntry,
    AccessResult,
    DiskUsage,
    ExpiryHours,
    FileAvailability,
    ReconcileStats,
    RecordPage,
    RequesterInfo,
    StorageStats,
    SweepStats,
    UploadMetadata,
)

__all__ = [
    "AccessLogEntry",
    "AccessResult",
    "DiskUsage",
    "ExpiredFileSweeper",
    "ExpiryHours",
    "FileAvailability",
    "FileDownload",
    "FileManager",
    "FileRecord",
    "FileRecordRepository",
    "IBlobStorageRepository",
    "OrphanReconciler",
    "ReconcileStats",
    "RecordPage",
    "RequesterInfo",
    "StorageStats",
    "SweepStats",
    "UploadMetadata",
]
