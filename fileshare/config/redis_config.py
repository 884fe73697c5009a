"""
Redis Configuration

Connection settings for the metadata store and the process-wide store the
file and user repositories share.
"""

import os
from typing import Optional

import redis

from fileshare.infrastructure.redis_repository import RedisConnectionManager, RedisRepository


class RedisConfig:
    """
    Metadata store settings.

    ``REDIS_URL`` takes precedence over the host/port/db/password variables.
    All file and user keys live under ``REDIS_KEY_PREFIX``.
    """

    def __init__(self):
        self.url = os.getenv("REDIS_URL")
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", 6379))
        self.db = int(os.getenv("REDIS_DB", 0))
        self.password = os.getenv("REDIS_PASSWORD")
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", 20))
        self.key_prefix = os.getenv("REDIS_KEY_PREFIX", "fileshare")

    def connection_pool(self) -> redis.ConnectionPool:
        options = {
            "max_connections": self.max_connections,
            "retry_on_timeout": True,
            "socket_keepalive": True,
        }
        if self.url:
            return redis.ConnectionPool.from_url(self.url, **options)
        return redis.ConnectionPool(
            host=self.host, port=self.port, db=self.db, password=self.password, **options
        )


_manager: Optional[RedisConnectionManager] = None
_key_prefix = ""


def init_redis(config: Optional[RedisConfig] = None) -> RedisConnectionManager:
    """
    Build the shared connection pool. No connection is opened until the
    first command.
    """
    global _manager, _key_prefix

    config = config or RedisConfig()
    _manager = RedisConnectionManager(config.connection_pool())
    _key_prefix = config.key_prefix
    return _manager


def file_store() -> RedisRepository:
    """
    Key-prefixed store backing the file record and user repositories.

    Raises:
        RuntimeError: If init_redis() has not been called
    """
    if _manager is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return RedisRepository(_manager.client, _key_prefix)


def redis_health_check() -> bool:
    return _manager is not None and _manager.health_check()
