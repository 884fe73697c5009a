"""
Accounts Domain

Upload ownership, aggregate statistics and preferences.
"""

from .entities import UploadStats, UserAccount, UserPreferences
from .repositories import UserRepository

__all__ = [
    "UploadStats",
    "UserAccount",
    "UserPreferences",
    "UserRepository",
]
