"""
Unit Tests for Cleanup Tasks

Tests the Celery sweep and reconcile tasks with a mocked FileService.
Tasks only reach storage through the application service.
"""

import unittest
from unittest.mock import Mock, patch

from fileshare.application.file_service import FileService
from fileshare.domain.file_storage import ReconcileStats, SweepStats


class TestCleanupTasksUnit(unittest.TestCase):
    """Unit tests with mocked services."""

    def setUp(self):
        self.mock_file_service = Mock()
        self.mock_app = Mock()
        self.mock_app.container.resolve = Mock(
            side_effect=lambda cls: {FileService: self.mock_file_service}[cls]
        )

    def test_sweep_returns_stats(self):
        self.mock_file_service.run_sweep_once.return_value = SweepStats(
            examined=4, deleted=3, failed=1, errors=["Error cleaning up file f1"]
        )

        with patch("celery_app.flask_app", self.mock_app):
            from fileshare.tasks.cleanup_task import sweep_expired_files

            result = sweep_expired_files()

        self.mock_file_service.run_sweep_once.assert_called_once()
        self.assertEqual(result["examined"], 4)
        self.assertEqual(result["deleted"], 3)
        self.assertEqual(result["failed"], 1)
        self.assertEqual(result["errors"], ["Error cleaning up file f1"])

    def test_sweep_failure_reported_not_raised(self):
        self.mock_file_service.run_sweep_once.side_effect = ConnectionError("redis down")

        with patch("celery_app.flask_app", self.mock_app):
            from fileshare.tasks.cleanup_task import sweep_expired_files

            result = sweep_expired_files()

        self.assertEqual(result["deleted"], 0)
        self.assertEqual(len(result["errors"]), 1)
        self.assertIn("redis down", result["errors"][0])

    def test_reconcile_returns_stats(self):
        self.mock_file_service.reconcile_orphans.return_value = ReconcileStats(found=2, deleted=2)

        with patch("celery_app.flask_app", self.mock_app):
            from fileshare.tasks.cleanup_task import reconcile_orphaned_blobs

            result = reconcile_orphaned_blobs()

        self.assertEqual(
            result, {"found": 2, "deleted": 2, "failed": 0, "partials_removed": 0, "errors": []}
        )

    def test_reconcile_failure_reported_not_raised(self):
        self.mock_file_service.reconcile_orphans.side_effect = OSError("disk gone")

        with patch("celery_app.flask_app", self.mock_app):
            from fileshare.tasks.cleanup_task import reconcile_orphaned_blobs

            result = reconcile_orphaned_blobs()

        self.assertEqual(result["found"], 0)
        self.assertIn("disk gone", result["errors"][0])

    def test_task_names(self):
        from fileshare.config.celery_config import RECONCILE_TASK, SWEEP_TASK
        from fileshare.tasks.cleanup_task import reconcile_orphaned_blobs, sweep_expired_files

        self.assertEqual(sweep_expired_files.name, SWEEP_TASK)
        self.assertEqual(reconcile_orphaned_blobs.name, RECONCILE_TASK)
