"""
Unit tests for the expired-file sweep and orphan reconciliation passes.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fileshare.domain.file_storage import ExpiredFileSweeper, OrphanReconciler
from tests.fixtures import (
    DEFAULT_NOW,
    FrozenClock,
    InMemoryBlobStorage,
    InMemoryFileRecordRepository,
    make_record,
)


def store(record_repository, blob_storage, record, content=b"data"):
    """Put a record and its blob in place without touching the flag."""
    blob_storage.blobs[record.storage_path] = content
    record_repository.put(record)
    return record


class TestExpiredFileSweeper:
    def test_deletes_only_expired(self, sweeper, record_repository, blob_storage, clock):
        expired = [
            store(record_repository, blob_storage, make_record(expiry_hours=1, storage_path=f"old-{i}"))
            for i in range(3)
        ]
        fresh = [
            store(record_repository, blob_storage, make_record(expiry_hours=48, storage_path=f"new-{i}"))
            for i in range(2)
        ]
        clock.advance(hours=2)

        stats = sweeper.run_once()

        assert stats.examined == 3
        assert stats.deleted == 3
        assert stats.failed == 0
        assert record_repository.ids() == {r.file_id for r in fresh}
        assert blob_storage.list_paths() == ["new-0", "new-1"]
        for record in expired:
            assert not blob_storage.exists(record.storage_path)

    def test_nothing_to_do(self, sweeper, record_repository, blob_storage):
        store(record_repository, blob_storage, make_record())
        stats = sweeper.run_once()
        assert stats.to_dict() == {"examined": 0, "deleted": 0, "failed": 0, "errors": []}

    def test_stale_flag_record_found_by_timestamp(self, sweeper, record_repository, blob_storage, clock):
        record = store(record_repository, blob_storage, make_record(expiry_hours=1, is_expired=False))
        clock.advance(hours=5)

        assert sweeper.run_once().deleted == 1
        assert record_repository.get(record.file_id) is None

    def test_flag_without_lapsed_timestamp_kept(self, sweeper, record_repository, blob_storage):
        record = store(record_repository, blob_storage, make_record(expiry_hours=24, is_expired=True))

        stats = sweeper.run_once()

        assert stats.deleted == 0
        assert record_repository.get(record.file_id) is not None

    def test_explicit_now(self, sweeper, record_repository, blob_storage):
        store(record_repository, blob_storage, make_record(expiry_hours=1))
        assert sweeper.run_once(now=DEFAULT_NOW + timedelta(hours=3)).deleted == 1

    def test_missing_blob_tolerated(self, sweeper, record_repository, clock):
        record = make_record(expiry_hours=1, storage_path="already-gone")
        record_repository.put(record)
        clock.advance(hours=2)

        stats = sweeper.run_once()

        assert stats.deleted == 1
        assert record_repository.get(record.file_id) is None

    def test_record_failure_does_not_abort_pass(self, sweeper, record_repository, blob_storage, clock):
        broken = store(record_repository, blob_storage, make_record(expiry_hours=1, storage_path="a"))
        ok = store(record_repository, blob_storage, make_record(expiry_hours=1, storage_path="b"))
        record_repository.fail_delete_ids.add(broken.file_id)
        clock.advance(hours=2)

        stats = sweeper.run_once()

        assert stats.examined == 2
        assert stats.deleted == 1
        assert stats.failed == 1
        assert broken.file_id in stats.errors[0]
        assert record_repository.get(ok.file_id) is None
        # Left for the next pass
        assert record_repository.get(broken.file_id) is not None

    def test_blob_failure_keeps_record(self, sweeper, record_repository, blob_storage, clock):
        record = store(record_repository, blob_storage, make_record(expiry_hours=1, storage_path="locked"))
        blob_storage.fail_delete_paths.add("locked")
        clock.advance(hours=2)

        stats = sweeper.run_once()

        assert stats.failed == 1
        assert record_repository.get(record.file_id) is not None
        assert blob_storage.exists("locked")

    def test_query_failure_reported(self, sweeper, record_repository):
        with patch.object(record_repository, "find_expired", side_effect=ConnectionError("down")):
            stats = sweeper.run_once()

        assert stats.examined == 0
        assert len(stats.errors) == 1
        assert "down" in stats.errors[0]

    def test_repeated_pass_is_idempotent(self, sweeper, record_repository, blob_storage, clock):
        store(record_repository, blob_storage, make_record(expiry_hours=1))
        clock.advance(hours=2)

        assert sweeper.run_once().deleted == 1
        assert sweeper.run_once().deleted == 0

    @pytest.mark.property
    @given(
        expired_count=st.integers(min_value=0, max_value=15),
        fresh_count=st.integers(min_value=0, max_value=15),
    )
    def test_sweep_counts(self, expired_count, fresh_count):
        clock = FrozenClock()
        records = InMemoryFileRecordRepository(clock=clock)
        blobs = InMemoryBlobStorage()
        for i in range(expired_count):
            store(records, blobs, make_record(expiry_hours=1, storage_path=f"e{i}"))
        for i in range(fresh_count):
            store(records, blobs, make_record(expiry_hours=72, storage_path=f"f{i}"))
        clock.advance(hours=1, seconds=1)

        stats = ExpiredFileSweeper(records, blobs, clock=clock).run_once()

        assert stats.deleted == expired_count
        assert len(records.ids()) == fresh_count
        assert len(blobs.list_paths()) == fresh_count


class TestOrphanReconciler:
    def test_finds_unreferenced_blob(self, reconciler, record_repository, blob_storage):
        for path in ("A", "B", "C"):
            blob_storage.blobs[path] = b"x"
        record_repository.put(make_record(storage_path="A"))
        record_repository.put(make_record(storage_path="C"))

        assert reconciler.find_orphans() == ["B"]

        stats = reconciler.reconcile()

        assert stats.found == 1
        assert stats.deleted == 1
        assert blob_storage.list_paths() == ["A", "C"]

    def test_paths_compared_normalized(self, reconciler, record_repository, blob_storage):
        blob_storage.blobs["sub/file.bin"] = b"x"
        record_repository.put(make_record(storage_path="sub\\file.bin"))

        assert reconciler.find_orphans() == []

    def test_record_without_blob_is_left_alone(self, reconciler, record_repository):
        record = make_record(storage_path="ghost")
        record_repository.put(record)

        stats = reconciler.reconcile()

        assert stats.found == 0
        assert record_repository.get(record.file_id) is not None

    def test_delete_failure_counted(self, reconciler, blob_storage):
        blob_storage.blobs["stuck"] = b"x"
        blob_storage.blobs["loose"] = b"x"
        blob_storage.fail_delete_paths.add("stuck")

        stats = reconciler.reconcile()

        assert stats.found == 2
        assert stats.deleted == 1
        assert stats.failed == 1
        assert blob_storage.list_paths() == ["stuck"]

    def test_disk_listed_before_records(self, record_repository, blob_storage):
        calls = []
        reconciler = OrphanReconciler(record_repository, blob_storage)

        with patch.object(
            blob_storage, "list_paths", side_effect=lambda: calls.append("disk") or []
        ), patch.object(
            record_repository, "list_storage_paths", side_effect=lambda: calls.append("records") or []
        ):
            reconciler.find_orphans()

        assert calls == ["disk", "records"]

    def test_stale_partials_reported(self, reconciler, blob_storage):
        blob_storage.stale_partials = 2

        stats = reconciler.reconcile()

        assert stats.partials_removed == 2
        assert stats.errors == []

    def test_partial_cleanup_failure_keeps_orphan_results(self, reconciler, blob_storage):
        blob_storage.blobs["loose"] = b"x"
        blob_storage.partial_error = PermissionError("read-only")

        stats = reconciler.reconcile()

        assert stats.deleted == 1
        assert stats.partials_removed == 0
        assert "read-only" in stats.errors[0]
