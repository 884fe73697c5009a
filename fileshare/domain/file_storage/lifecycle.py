"""
Lifecycle Policy

Pure predicates and computations over a FileRecord and a current time.
Nothing here reads the clock or touches storage, so every function is safe
to call from any request or worker thread without locking.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Union

from fileshare.domain.clock import ensure_utc

from .value_objects import ExpiryHours, FileAvailability

if TYPE_CHECKING:
    from .entities import FileRecord


def compute_expiry(
    created_at: datetime, expiry_hours: Union[int, ExpiryHours] = ExpiryHours.DEFAULT
) -> datetime:
    """
    Compute the expiry timestamp for a record created at ``created_at``.

    Args:
        created_at: Creation timestamp
        expiry_hours: Horizon in whole hours, 1 to 168

    Returns:
        ``created_at`` plus ``expiry_hours`` hours

    Raises:
        InvalidConfigurationError: If ``expiry_hours`` is outside [1, 168]
    """
    hours = expiry_hours if isinstance(expiry_hours, ExpiryHours) else ExpiryHours(expiry_hours)
    return created_at + timedelta(hours=hours.value)


def is_expired(record: "FileRecord", now: datetime) -> bool:
    """True once ``now`` is strictly past the record's expiry timestamp."""
    return ensure_utc(now) > ensure_utc(record.expires_at)


def is_download_limit_reached(record: "FileRecord") -> bool:
    """True once the download counter has reached the record's cap."""
    return record.download_count >= record.max_downloads


def time_remaining(record: "FileRecord", now: datetime) -> timedelta:
    """Time left before expiry, never negative."""
    remaining = ensure_utc(record.expires_at) - ensure_utc(now)
    return max(remaining, timedelta(0))


def availability(record: "FileRecord", now: datetime) -> FileAvailability:
    """
    Classify a record for serving.

    Expiry is checked before the download limit, so an expired file that also
    hit its limit reports EXPIRED.
    """
    if is_expired(record, now):
        return FileAvailability.EXPIRED
    if is_download_limit_reached(record):
        return FileAvailability.LIMIT_REACHED
    return FileAvailability.AVAILABLE


def is_sweepable(record: "FileRecord", now: datetime) -> bool:
    """
    Whether the sweeper may delete a record.

    Always decided from the expiry timestamp. The cached flag only helps find
    candidates; a set flag on a record whose expiry is still ahead (after a
    clock change) does not make it sweepable.
    """
    return is_expired(record, now)
