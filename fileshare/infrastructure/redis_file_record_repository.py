"""
Redis File Record Repository Implementation

Concrete Redis-based implementation of FileRecordRepository.

Key layout (under the repository prefix):
    file:{file_id}            JSON record
    files:by_owner:{owner}    sorted set of file ids scored by created_at
    files:by_expiry           sorted set of every file id scored by expires_at
    files:expired_flag        set of file ids whose cached flag is true
"""

import json
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from redis.exceptions import RedisError

from fileshare.domain.clock import Clock, utc_now
from fileshare.domain.file_storage.entities import FileRecord
from fileshare.domain.file_storage.repositories import FileRecordRepository
from fileshare.domain.file_storage.value_objects import (
    AccessLogEntry,
    AccessResult,
    RecordPage,
)

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)

# KEYS: record, expired flag set, expiry index
# ARGV: file id, entry JSON, now (epoch seconds), access log limit (0 = unlimited)
RECORD_ACCESS_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return 'not_found'
end

local record = cjson.decode(data)
local count = tonumber(record['download_count']) or 0
local cap = tonumber(record['max_downloads']) or 100
if count >= cap then
    return 'limit_reached'
end
record['download_count'] = count + 1

local log = record['access_log']
if type(log) ~= 'table' then
    log = {}
end
table.insert(log, cjson.decode(ARGV[2]))
local keep = tonumber(ARGV[4])
if keep > 0 and #log > keep then
    local trimmed = {}
    for i = #log - keep + 1, #log do
        table.insert(trimmed, log[i])
    end
    log = trimmed
end
record['access_log'] = log

local expires_at = tonumber(redis.call('ZSCORE', KEYS[3], ARGV[1]))
local expired = expires_at ~= nil and tonumber(ARGV[3]) > expires_at
record['is_expired'] = expired

redis.call('SET', KEYS[1], cjson.encode(record))
if expired then
    redis.call('SADD', KEYS[2], ARGV[1])
else
    redis.call('SREM', KEYS[2], ARGV[1])
end
return 'recorded'
"""

BATCH_SIZE = 200


class RedisFileRecordRepository(FileRecordRepository):
    """
    Redis-based implementation of FileRecordRepository.

    Records carry no TTL; they live until swept or deleted so expired links
    can still be told apart from unknown ones.
    """

    RECORD_PREFIX = "file"
    OWNER_INDEX_PREFIX = "files:by_owner"
    EXPIRY_INDEX = "files:by_expiry"
    EXPIRED_FLAG_SET = "files:expired_flag"

    def __init__(
        self,
        redis_repository: RedisRepository,
        clock: Clock = utc_now,
        access_log_limit: Optional[int] = None,
    ):
        """
        Initialize with Redis repository.

        Args:
            redis_repository: RedisRepository instance from infrastructure layer
            clock: Time source used to refresh the expired flag on save
            access_log_limit: Newest access entries kept per record, None for all
        """
        self.redis_repo = redis_repository
        self.redis = redis_repository.redis
        self.clock = clock
        self.access_log_limit = access_log_limit
        self._record_access = self.redis.register_script(RECORD_ACCESS_SCRIPT)

    def _record_name(self, file_id: str) -> str:
        return f"{self.RECORD_PREFIX}:{file_id}"

    def _record_key(self, file_id: str) -> str:
        return self.redis_repo.make_key(self._record_name(file_id))

    def _owner_key(self, owner_id: str) -> str:
        return self.redis_repo.make_key(f"{self.OWNER_INDEX_PREFIX}:{owner_id}")

    @property
    def _expiry_key(self) -> str:
        return self.redis_repo.make_key(self.EXPIRY_INDEX)

    @property
    def _flag_key(self) -> str:
        return self.redis_repo.make_key(self.EXPIRED_FLAG_SET)

    def save(self, record: FileRecord) -> bool:
        """
        Save a record and its index entries in one transaction.

        The expired flag is recomputed against the clock first.
        """
        record.refresh_expired_flag(self.clock())

        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.set(self._record_key(record.file_id), json.dumps(record.to_dict()))
            pipe.zadd(self._expiry_key, {record.file_id: record.expires_at.timestamp()})
            if record.owner_id is not None:
                pipe.zadd(
                    self._owner_key(record.owner_id),
                    {record.file_id: record.created_at.timestamp()},
                )
            if record.is_expired:
                pipe.sadd(self._flag_key, record.file_id)
            else:
                pipe.srem(self._flag_key, record.file_id)
            pipe.execute()
            return True
        except RedisError as e:
            logger.error(f"Error saving file record {record.file_id}: {e}")
            return False

    def get(self, file_id: str) -> Optional[FileRecord]:
        data = self.redis_repo.get_json(self._record_name(file_id))
        if data is None:
            return None

        try:
            return FileRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Error deserializing file record {file_id}: {e}")
            return None

    def find_by_owner(self, owner_id: str, page: int = 1, page_size: int = 10) -> RecordPage:
        """Newest first, using the owner's created_at index."""
        owner_key = self._owner_key(owner_id)
        start = (page - 1) * page_size
        ids = [
            self._decode(file_id)
            for file_id in self.redis.zrevrange(owner_key, start, start + page_size - 1)
        ]

        records = []
        for file_id, record in zip(ids, self._load_many(ids)):
            if record is None:
                self.redis.zrem(owner_key, file_id)
                continue
            records.append(record)

        return RecordPage(
            items=records,
            page=page,
            page_size=page_size,
            total=self.redis.zcard(owner_key),
        )

    def find_expired(self, now: datetime) -> List[FileRecord]:
        """
        Union of the flag set and every id whose expiry score is below ``now``.

        Raises:
            RedisError: If the indexes cannot be read
        """
        lapsed = self.redis.zrangebyscore(self._expiry_key, "-inf", f"({now.timestamp()}")
        flagged = self.redis.smembers(self._flag_key)
        ids = sorted({self._decode(file_id) for file_id in list(lapsed) + list(flagged)})

        expired = []
        for file_id, record in zip(ids, self._load_many(ids)):
            if record is None:
                if not self.redis.exists(self._record_key(file_id)):
                    self._drop_index_entries(file_id)
                continue
            expired.append(record)
        return expired

    def delete(self, file_id: str) -> bool:
        """
        Delete a record and its index entries.

        Raises:
            RedisError: If Redis is unreachable
        """
        record = self.get(file_id)

        pipe = self.redis.pipeline(transaction=True)
        pipe.delete(self._record_key(file_id))
        pipe.zrem(self._expiry_key, file_id)
        pipe.srem(self._flag_key, file_id)
        if record is not None and record.owner_id is not None:
            pipe.zrem(self._owner_key(record.owner_id), file_id)
        deleted = pipe.execute()[0]
        return deleted > 0

    def record_access(self, file_id: str, entry: AccessLogEntry, now: datetime) -> AccessResult:
        result = self._record_access(
            keys=[
                self._record_key(file_id),
                self._flag_key,
                self._expiry_key,
            ],
            args=[
                file_id,
                json.dumps(entry.to_dict()),
                now.timestamp(),
                self.access_log_limit or 0,
            ],
        )
        return AccessResult(self._decode(result))

    def list_storage_paths(self) -> List[str]:
        return [record.storage_path for record in self.list_all()]

    def list_all(self) -> List[FileRecord]:
        ids = [self._decode(file_id) for file_id in self.redis.zrange(self._expiry_key, 0, -1)]
        return [record for record in self._load_many(ids) if record is not None]

    def count(self) -> int:
        return self.redis.zcard(self._expiry_key)

    def _load_many(self, ids: List[str]) -> Iterable[Optional[FileRecord]]:
        for offset in range(0, len(ids), BATCH_SIZE):
            batch = ids[offset:offset + BATCH_SIZE]
            keys = [self._record_key(file_id) for file_id in batch]
            for file_id, raw in zip(batch, self.redis.mget(keys)):
                if raw is None:
                    yield None
                    continue
                try:
                    yield FileRecord.from_dict(json.loads(self._decode(raw)))
                except (KeyError, TypeError, ValueError) as e:
                    logger.error(f"Error deserializing file record {file_id}: {e}")
                    yield None

    def _drop_index_entries(self, file_id: str) -> None:
        pipe = self.redis.pipeline(transaction=False)
        pipe.zrem(self._expiry_key, file_id)
        pipe.srem(self._flag_key, file_id)
        pipe.execute()

    @staticmethod
    def _decode(value) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value
