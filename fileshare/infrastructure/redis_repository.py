"""
Redis Repository Base Class

JSON document storage and pooled connections shared by the Redis-backed
repositories.
"""

import json
import logging
from typing import Any, Dict, Optional

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisRepository:
    """Base Redis repository storing JSON documents under prefixed keys."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    @staticmethod
    def _decode(value: Any) -> Any:
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def set_json(
        self,
        key: str,
        data: Dict[str, Any],
        ttl: Optional[int] = None,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Set JSON data with optional TTL.

        Args:
            key: Key relative to the prefix
            data: Dictionary to store as JSON
            ttl: Time to live in seconds
            only_if_absent: Leave an existing key untouched

        Returns:
            True if the value was written, False otherwise
        """
        try:
            redis_key = self.make_key(key)
            json_data = json.dumps(data)

            return bool(
                self.redis.set(redis_key, json_data, ex=ttl or None, nx=only_if_absent)
            )
        except (RedisConnectionError, TypeError) as e:
            logger.error(f"Error setting JSON data for key {key}: {e}")
            return False

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Returns:
            Dictionary if found and valid JSON, None otherwise
        """
        try:
            data = self.redis.get(self.make_key(key))
            if data is None:
                return None
            return json.loads(self._decode(data))
        except (RedisConnectionError, json.JSONDecodeError) as e:
            logger.error(f"Error getting JSON data for key {key}: {e}")
            return None

    def delete(self, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            True if key was deleted, False otherwise
        """
        try:
            return self.redis.delete(self.make_key(key)) > 0
        except RedisConnectionError as e:
            logger.error(f"Error deleting key {key}: {e}")
            return False

    def exists(self, key: str) -> bool:
        try:
            return self.redis.exists(self.make_key(key)) > 0
        except RedisConnectionError as e:
            logger.error(f"Error checking existence of key {key}: {e}")
            return False


class RedisConnectionManager:
    """Lazily creates one client over a shared connection pool."""

    def __init__(self, connection_pool: redis.ConnectionPool):
        self.connection_pool = connection_pool
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()
