"""
Redis User Repository Implementation

Accounts are stored as JSON documents; their counters live in a separate
hash so concurrent uploads and downloads can increment them with HINCRBY
instead of read-modify-write.
"""

import logging
from typing import Optional

from redis.exceptions import RedisError

from fileshare.domain.accounts.entities import UploadStats, UserAccount, UserPreferences
from fileshare.domain.accounts.repositories import UserRepository

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


class RedisUserRepository(UserRepository):
    """Redis-based implementation of UserRepository."""

    ACCOUNT_PREFIX = "user"
    STATS_PREFIX = "user_stats"

    def __init__(self, redis_repository: RedisRepository):
        self.redis_repo = redis_repository
        self.redis = redis_repository.redis

    def _stats_key(self, user_id: str) -> str:
        return self.redis_repo.make_key(f"{self.STATS_PREFIX}:{user_id}")

    def save(self, user: UserAccount) -> bool:
        data = user.to_dict()
        stats = data.pop("upload_stats")
        if not self.redis_repo.set_json(f"{self.ACCOUNT_PREFIX}:{user.user_id}", data):
            return False

        try:
            self.redis.hset(self._stats_key(user.user_id), mapping=stats)
            return True
        except RedisError as e:
            logger.error(f"Error saving stats for user {user.user_id}: {e}")
            return False

    def get(self, user_id: str) -> Optional[UserAccount]:
        data = self.redis_repo.get_json(f"{self.ACCOUNT_PREFIX}:{user_id}")
        if data is None:
            return None

        raw_stats = self.redis.hgetall(self._stats_key(user_id))
        data["upload_stats"] = UploadStats.from_dict(
            {self._decode(k): self._decode(v) for k, v in raw_stats.items()}
        ).to_dict()
        return UserAccount.from_dict(data)

    def create_if_absent(self, user: UserAccount) -> bool:
        data = user.to_dict()
        data.pop("upload_stats")
        return self.redis_repo.set_json(
            f"{self.ACCOUNT_PREFIX}:{user.user_id}", data, only_if_absent=True
        )

    def update_preferences(self, user_id: str, preferences: UserPreferences) -> bool:
        key = f"{self.ACCOUNT_PREFIX}:{user_id}"
        data = self.redis_repo.get_json(key)
        if data is None:
            return False

        data["preferences"] = preferences.to_dict()
        return self.redis_repo.set_json(key, data)

    def increment_upload_stats(self, user_id: str, file_size: int) -> bool:
        if not self.redis_repo.exists(f"{self.ACCOUNT_PREFIX}:{user_id}"):
            return False

        pipe = self.redis.pipeline(transaction=True)
        pipe.hincrby(self._stats_key(user_id), "total_files", 1)
        pipe.hincrby(self._stats_key(user_id), "total_size", file_size)
        pipe.execute()
        return True

    def increment_download_stats(self, user_id: str) -> bool:
        if not self.redis_repo.exists(f"{self.ACCOUNT_PREFIX}:{user_id}"):
            return False

        self.redis.hincrby(self._stats_key(user_id), "total_downloads", 1)
        return True

    @staticmethod
    def _decode(value) -> str:
        return value.decode("utf-8") if isinstance(value, bytes) else value
