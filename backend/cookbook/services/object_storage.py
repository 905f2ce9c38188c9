"""
Object storage on the local filesystem.

Blobs are addressed by a relative path under settings.STORAGE_DIR and
published under settings.STORAGE_BASE_URL (the API mounts the directory as
static files).
"""

import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from cookbook.config import settings

logger = logging.getLogger(__name__)


class StoragePathError(ValueError):
    """Path or URL that does not address a blob inside the storage root."""


class ObjectStorage:
    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.STORAGE_DIR).resolve()
        self.base_url = (base_url or settings.STORAGE_BASE_URL).rstrip("/")

    def _full_path(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise StoragePathError(f"Invalid storage path: {path}")
        full = (self.root / Path(*relative.parts)).resolve()
        if self.root not in full.parents:
            raise StoragePathError(f"Path escapes storage root: {path}")
        return full

    def put(self, path: str, data: bytes) -> None:
        full = self._full_path(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(data)
        logger.debug(f"Stored {len(data)} bytes at {path}")

    def delete(self, path: str) -> None:
        """Delete a blob. Raises FileNotFoundError when it does not exist."""
        self._full_path(path).unlink()

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{PurePosixPath(path).as_posix()}"

    def path_from_url(self, url: str) -> str:
        """Map a public URL back to its storage path."""
        prefix = self.base_url + "/"
        if not url.startswith(prefix):
            raise StoragePathError(f"URL is not served by this storage: {url}")
        path = url[len(prefix):].split("?", 1)[0]
        self._full_path(path)
        return path
