"""
Local Blob Storage Repository Implementation

Concrete implementation of IBlobStorageRepository for the local filesystem.
Uploads are written to a hidden temporary file and renamed into place, so
a blob path is never visible half-written.
"""

import os
import re
import secrets
import time
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Optional

from fileshare.domain.file_storage.storage_repository import IBlobStorageRepository

CHUNK_SIZE = 8192
PARTIAL_SUFFIX = ".part"
_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


def _is_partial(path: Path) -> bool:
    return path.name.startswith(".") and path.name.endswith(PARTIAL_SUFFIX)


class LocalBlobStorageRepository(IBlobStorageRepository):
    """
    Local filesystem implementation of IBlobStorageRepository.

    All paths are relative to ``base_path``; anything resolving outside it is
    rejected. Deletes tolerate paths that vanished in the meantime, since
    request handlers, the sweeper and the reconciler share the root without
    a lock.

    Attributes:
        base_path: Root directory of the blob store
    """

    def __init__(self, base_path: str = "./uploads"):
        """
        Initialize the local blob storage repository.

        Args:
            base_path: Root directory for blobs (created if missing)

        Raises:
            PermissionError: If insufficient permissions to create directory
            OSError: If directory creation fails for other reasons
        """
        self.base_path = Path(base_path).resolve()
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Insufficient permissions to create storage directory: {self.base_path}"
            ) from e
        except OSError as e:
            raise OSError(f"Failed to create storage directory: {self.base_path}") from e

    def _resolve(self, file_path: str) -> Path:
        """
        Map a relative blob path to an absolute one under the root.

        Raises:
            ValueError: If the path is empty, absolute or escapes the root
        """
        if not file_path or not file_path.strip():
            raise ValueError("file_path cannot be empty")
        if PurePosixPath(file_path).is_absolute() or Path(file_path).is_absolute():
            raise ValueError(f"file_path must be relative: {file_path}")

        full_path = (self.base_path / file_path).resolve()
        if full_path != self.base_path and self.base_path not in full_path.parents:
            raise ValueError(f"file_path escapes the storage root: {file_path}")
        return full_path

    def generate_path(self, original_name: str) -> str:
        suffix = PurePosixPath(original_name.replace("\\", "/")).suffix.lower()
        extension = suffix if _EXTENSION_PATTERN.match(suffix) else ""

        while True:
            name = f"file-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
            if not (self.base_path / name).exists():
                return name

    def save(self, file_path: str, content: BinaryIO) -> bool:
        full_path = self._resolve(file_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        partial = full_path.with_name(f".{full_path.name}{PARTIAL_SUFFIX}")

        try:
            with open(partial, "wb") as f:
                while True:
                    chunk = content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
            os.replace(partial, full_path)
            return True
        except PermissionError:
            partial.unlink(missing_ok=True)
            raise
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise IOError(f"Failed to save file: {e}") from e

    def get(self, file_path: str) -> Optional[BinaryIO]:
        """Open a blob for streaming; the caller closes the handle."""
        try:
            full_path = self._resolve(file_path)
            return open(full_path, "rb")
        except (OSError, ValueError):
            # Missing, directory or invalid path
            return None

    def delete(self, file_path: str) -> bool:
        try:
            full_path = self._resolve(file_path)
        except ValueError:
            return True

        try:
            if full_path.is_file():
                full_path.unlink()
            return True
        except FileNotFoundError:
            # Deleted concurrently
            return True
        except PermissionError:
            raise
        except OSError as e:
            raise IOError(f"Failed to delete file: {e}") from e

    def exists(self, file_path: str) -> bool:
        try:
            return self._resolve(file_path).is_file()
        except (OSError, ValueError):
            return False

    def get_size(self, file_path: str) -> Optional[int]:
        try:
            full_path = self._resolve(file_path)
            if not full_path.is_file():
                return None
            return full_path.stat().st_size
        except (OSError, ValueError):
            return None

    def list_paths(self) -> List[str]:
        """
        List every finished blob under the root.

        In-flight temporary files are skipped.
        """
        paths = []
        for item in self.base_path.rglob("*"):
            if _is_partial(item):
                continue
            try:
                if not item.is_file():
                    continue
            except OSError:
                continue
            paths.append(item.relative_to(self.base_path).as_posix())
        return sorted(paths)

    def remove_stale_partials(self, max_age_seconds: float) -> int:
        """
        Delete temporary upload files older than ``max_age_seconds``.

        A crash between open and rename leaves the partial file behind;
        younger ones may still belong to a save in progress.
        """
        cutoff = time.time() - max_age_seconds
        removed = 0
        for item in self.base_path.rglob(f"*{PARTIAL_SUFFIX}"):
            if not _is_partial(item):
                continue
            try:
                if item.is_file() and item.stat().st_mtime < cutoff:
                    item.unlink()
                    removed += 1
            except FileNotFoundError:
                # Renamed into place or removed concurrently
                continue
        return removed
