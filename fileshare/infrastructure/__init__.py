"""
Infrastructure Layer

Concrete Redis, filesystem and SendGrid implementations of the domain
repository and notifier interfaces.
"""

from .local_blob_storage_repository import LocalBlobStorageRepository
from .redis_file_record_repository import RedisFileRecordRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .redis_user_repository import RedisUserRepository
from .sendgrid_notifier import SendGridNotifier

__all__ = [
    "LocalBlobStorageRepository",
    "RedisConnectionManager",
    "RedisFileRecordRepository",
    "RedisRepository",
    "RedisUserRepository",
    "SendGridNotifier",
]
