"""
Account Repositories

Repository interface for the account data the file lifecycle touches.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .entities import UserAccount, UserPreferences


class UserRepository(ABC):
    """Abstract repository interface for user accounts."""

    @abstractmethod
    def save(self, user: UserAccount) -> bool:
        """
        Create or replace an account.

        Returns:
            True if successful, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserAccount]:
        """
        Retrieve an account.

        Returns:
            UserAccount if found, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def create_if_absent(self, user: UserAccount) -> bool:
        """
        Store a new account unless one with the same id already exists.

        Existing accounts and their statistics are left untouched.

        Returns:
            True if the account was created
        """
        pass  # pragma: no cover

    @abstractmethod
    def update_preferences(self, user_id: str, preferences: UserPreferences) -> bool:
        """
        Replace an account's preferences without touching its statistics.

        Returns:
            True if the account exists and was updated
        """
        pass  # pragma: no cover

    @abstractmethod
    def increment_upload_stats(self, user_id: str, file_size: int) -> bool:
        """
        Add one file of ``file_size`` bytes to the account's upload totals.

        Returns:
            True if the account exists and was updated
        """
        pass  # pragma: no cover

    @abstractmethod
    def increment_download_stats(self, user_id: str) -> bool:
        """
        Add one download to the account's totals.

        Returns:
            True if the account exists and was updated
        """
        pass  # pragma: no cover
