"""
Celery Tasks

Background maintenance tasks for the file lifecycle.
"""

from .cleanup_task import reconcile_orphaned_blobs, sweep_expired_files

__all__ = ["reconcile_orphaned_blobs", "sweep_expired_files"]
