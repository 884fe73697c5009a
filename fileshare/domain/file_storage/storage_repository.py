"""
Blob Storage Repository Interface

Abstract interface for raw file content storage.
This abstraction keeps the domain layer infrastructure-agnostic by defining
the contract for blob operations without depending on a specific backend.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional

from .value_objects import DiskUsage


class IBlobStorageRepository(ABC):
    """
    Unified interface for blob storage operations.

    Contract Guarantees:
    - Paths are relative to the storage root
    - delete() is idempotent: a missing path is already deleted
    - exists() never raises for invalid paths
    - get() returns None for missing paths
    - list_paths() only returns regular files under the managed root

    The root is shared by request handlers, the sweeper and the reconciler
    with no cross-component lock, so every operation must tolerate a path
    vanishing between calls.
    """

    @abstractmethod
    def generate_path(self, original_name: str) -> str:
        """
        Generate a new unique relative path for an upload.

        Args:
            original_name: Client file name, used only for its extension

        Returns:
            Relative path that no existing blob uses

        Example:
            >>> repository.generate_path("report.pdf")
            'file-1718000000000-482913.pdf'
        """
        pass  # pragma: no cover

    @abstractmethod
    def save(self, file_path: str, content: BinaryIO) -> bool:
        """
        Write content to storage.

        Args:
            file_path: Relative path for the blob
            content: Binary content as a file-like object

        Returns:
            True if the blob was written

        Raises:
            PermissionError: If there are insufficient permissions to write
            IOError: If there are I/O errors during the operation
            ValueError: If file_path is empty or escapes the root
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, file_path: str) -> Optional[BinaryIO]:
        """
        Open a blob for reading.

        The caller is responsible for closing the returned stream.

        Args:
            file_path: Relative path to the blob

        Returns:
            Binary stream if found, None if the blob doesn't exist
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, file_path: str) -> bool:
        """
        Delete a blob.

        Idempotent: deleting a missing path returns True.

        Args:
            file_path: Relative path to the blob

        Returns:
            True if the blob is gone afterwards

        Raises:
            PermissionError: If there are insufficient permissions to delete
            IOError: If there are I/O errors during the operation
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, file_path: str) -> bool:
        """
        Check if a blob exists.

        Args:
            file_path: Relative path to check

        Returns:
            True if a regular file exists at the path
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_size(self, file_path: str) -> Optional[int]:
        """
        Get the size of a blob in bytes.

        Returns:
            Size in bytes, None for missing paths
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_paths(self) -> List[str]:
        """
        List every blob under the managed root.

        Returns:
            Relative paths of all regular files
        """
        pass  # pragma: no cover

    def get_disk_usage(self) -> DiskUsage:
        """
        Summarize the blob store footprint.

        Returns:
            DiskUsage with total bytes and file count
        """
        total_size = 0
        file_count = 0
        for path in self.list_paths():
            size = self.get_size(path)
            if size is None:
                continue
            total_size += size
            file_count += 1
        return DiskUsage(total_size=total_size, file_count=file_count)

    def remove_stale_partials(self, max_age_seconds: float) -> int:
        """
        Delete temporary files left behind by interrupted saves.

        Stores that never write through a temporary file have nothing to do.

        Args:
            max_age_seconds: Only partial files untouched for longer are removed

        Returns:
            Number of partial files removed
        """
        return 0
