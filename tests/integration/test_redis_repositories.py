"""
Integration tests for the Redis-backed repositories.

Require a Redis server (REDIS_HOST / REDIS_PORT, database 15); skipped when
none is reachable. Every test runs under its own key prefix.
"""

import os
import threading
import uuid
from datetime import timedelta

import pytest
import redis

from fileshare.domain.accounts.entities import UserAccount, UserPreferences
from fileshare.domain.file_storage import AccessLogEntry, AccessResult
from fileshare.infrastructure.redis_file_record_repository import RedisFileRecordRepository
from fileshare.infrastructure.redis_repository import RedisRepository
from fileshare.infrastructure.redis_user_repository import RedisUserRepository
from tests.fixtures import DEFAULT_NOW, FrozenClock, make_record

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def redis_client():
    client = redis.Redis(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", 6379)),
        db=15,
        socket_connect_timeout=1,
    )
    try:
        client.ping()
    except redis.exceptions.RedisError:
        pytest.skip("Redis server not available")
    yield client
    client.close()


@pytest.fixture
def redis_repository(redis_client):
    prefix = f"test-{uuid.uuid4().hex[:8]}"
    yield RedisRepository(redis_client, prefix)
    for key in redis_client.scan_iter(f"{prefix}:*"):
        redis_client.delete(key)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def records(redis_repository, clock):
    return RedisFileRecordRepository(redis_repository, clock=clock)


def entry(ip="10.0.0.1"):
    return AccessLogEntry(ip_address=ip, user_agent="pytest", accessed_at=DEFAULT_NOW)


class TestRedisFileRecordRepository:
    def test_save_and_get(self, records):
        record = make_record(owner_id="alice")
        assert records.save(record)

        loaded = records.get(record.file_id)

        assert loaded == record
        assert records.count() == 1

    def test_get_missing(self, records):
        assert records.get("missing") is None

    def test_save_refreshes_flag(self, records, clock):
        record = make_record(expiry_hours=1)
        clock.advance(hours=2)

        records.save(record)

        assert records.get(record.file_id).is_expired is True

    def test_find_expired_by_timestamp_and_flag(self, records, redis_repository, clock):
        lapsed = make_record(expiry_hours=1, storage_path="a")
        fresh = make_record(expiry_hours=48, storage_path="b")
        records.save(lapsed)
        records.save(fresh)

        found = records.find_expired(DEFAULT_NOW + timedelta(hours=2))

        assert [r.file_id for r in found] == [lapsed.file_id]

    def test_find_by_owner_newest_first(self, records):
        older = make_record(owner_id="alice", storage_path="a")
        newer = make_record(owner_id="alice", storage_path="b", created_at=DEFAULT_NOW + timedelta(minutes=5))
        records.save(older)
        records.save(newer)
        records.save(make_record(owner_id="bob"))

        page = records.find_by_owner("alice", page=1, page_size=1)

        assert [r.file_id for r in page.items] == [newer.file_id]
        assert page.total == 2

    def test_delete_removes_indexes(self, records):
        record = make_record(owner_id="alice", expiry_hours=1)
        records.save(record)

        assert records.delete(record.file_id) is True
        assert records.delete(record.file_id) is False
        assert records.find_by_owner("alice").total == 0
        assert records.find_expired(DEFAULT_NOW + timedelta(days=1)) == []
        assert records.count() == 0

    def test_record_access(self, records):
        record = make_record(max_downloads=2)
        records.save(record)

        assert records.record_access(record.file_id, entry(), DEFAULT_NOW) is AccessResult.RECORDED
        assert records.record_access(record.file_id, entry(), DEFAULT_NOW) is AccessResult.RECORDED
        assert records.record_access(record.file_id, entry(), DEFAULT_NOW) is AccessResult.LIMIT_REACHED
        assert records.record_access("missing", entry(), DEFAULT_NOW) is AccessResult.NOT_FOUND

        stored = records.get(record.file_id)
        assert stored.download_count == 2
        assert [e.ip_address for e in stored.access_log] == ["10.0.0.1", "10.0.0.1"]

    def test_record_access_refreshes_flag(self, records):
        record = make_record(expiry_hours=1)
        records.save(record)

        records.record_access(record.file_id, entry(), DEFAULT_NOW + timedelta(hours=2))

        assert records.get(record.file_id).is_expired is True

    def test_record_access_trims_log(self, redis_repository, clock):
        records = RedisFileRecordRepository(redis_repository, clock=clock, access_log_limit=2)
        record = make_record()
        records.save(record)

        for i in range(4):
            records.record_access(record.file_id, entry(f"10.0.0.{i}"), DEFAULT_NOW)

        stored = records.get(record.file_id)
        assert stored.download_count == 4
        assert [e.ip_address for e in stored.access_log] == ["10.0.0.2", "10.0.0.3"]

    def test_concurrent_access_never_exceeds_cap(self, records):
        record = make_record(max_downloads=5)
        records.save(record)
        results = []

        def download():
            results.append(records.record_access(record.file_id, entry(), DEFAULT_NOW))

        threads = [threading.Thread(target=download) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(AccessResult.RECORDED) == 5
        assert records.get(record.file_id).download_count == 5

    def test_list_storage_paths(self, records):
        records.save(make_record(storage_path="a.bin"))
        records.save(make_record(storage_path="b.bin"))

        assert sorted(records.list_storage_paths()) == ["a.bin", "b.bin"]
        assert len(records.list_all()) == 2


class TestRedisUserRepository:
    def test_stats_increment(self, redis_repository):
        users = RedisUserRepository(redis_repository)
        users.save(UserAccount(user_id="alice", username="alice"))

        assert users.increment_upload_stats("alice", 100)
        assert users.increment_upload_stats("alice", 50)
        assert users.increment_download_stats("alice")

        stats = users.get("alice").upload_stats
        assert stats.total_files == 2
        assert stats.total_size == 150
        assert stats.total_downloads == 1

    def test_unknown_user(self, redis_repository):
        users = RedisUserRepository(redis_repository)

        assert users.get("ghost") is None
        assert users.increment_upload_stats("ghost", 10) is False
        assert users.increment_download_stats("ghost") is False

    def test_create_if_absent_keeps_existing_account(self, redis_repository):
        users = RedisUserRepository(redis_repository)

        assert users.create_if_absent(UserAccount(user_id="alice", username="alice"))
        users.increment_upload_stats("alice", 10)

        assert users.create_if_absent(UserAccount(user_id="alice", username="alice")) is False
        assert users.get("alice").upload_stats.total_files == 1

    def test_update_preferences_keeps_stats(self, redis_repository):
        users = RedisUserRepository(redis_repository)
        users.create_if_absent(UserAccount(user_id="alice", username="alice"))
        users.increment_upload_stats("alice", 10)

        assert users.update_preferences(
            "alice", UserPreferences(default_expiry_hours=48, email_notifications=False)
        )

        account = users.get("alice")
        assert account.preferences == UserPreferences(default_expiry_hours=48, email_notifications=False)
        assert account.upload_stats.total_size == 10
        assert users.update_preferences("ghost", UserPreferences()) is False
