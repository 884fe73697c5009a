"""
Cleanup Tasks

Celery tasks for the expired-file sweep (scheduled by beat) and orphan
reconciliation (on demand). Thin wrappers that delegate to FileService.
"""

import logging

from celery_app import celery_app
from fileshare.config.celery_config import RECONCILE_TASK, SWEEP_TASK

logger = logging.getLogger(__name__)


def _file_service():
    # Resolved per run so tests can patch the Flask app
    from celery_app import flask_app
    from fileshare.application.file_service import FileService

    return flask_app.container.resolve(FileService)


@celery_app.task(bind=True, name=SWEEP_TASK)
def sweep_expired_files(self):
    """
    Run one expired-file sweep pass.

    Per-record failures are counted in the result and retried by the next
    scheduled pass.

    Returns:
        dict: examined, deleted, failed and errors
    """
    logger.info("Starting sweep task")

    try:
        stats = _file_service().run_sweep_once()
    except Exception as e:
        error_msg = f"Sweep task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {"examined": 0, "deleted": 0, "failed": 0, "errors": [error_msg]}

    if stats.errors:
        logger.warning(f"Sweep errors: {stats.errors}")
    return stats.to_dict()


@celery_app.task(bind=True, name=RECONCILE_TASK)
def reconcile_orphaned_blobs(self):
    """
    Delete blobs that no file record references.

    Returns:
        dict: found, deleted, failed and errors
    """
    logger.info("Starting orphan reconciliation task")

    try:
        stats = _file_service().reconcile_orphans()
    except Exception as e:
        error_msg = f"Reconcile task failed: {e}"
        logger.error(error_msg, exc_info=True)
        return {"found": 0, "deleted": 0, "failed": 0, "errors": [error_msg]}

    if stats.errors:
        logger.warning(f"Reconcile errors: {stats.errors}")
    return stats.to_dict()
