"""
Local filesystem blob store.

Used for development and tests. Keys map to paths below a root directory.
"""

import asyncio
import logging
from datetime import timedelta
from pathlib import Path

from routebase.shared.errors import StorageError
from .base import BlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Blob store backed by a directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Invalid object key: {key}")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise StorageError(f"Failed to upload file to storage: {e}") from e
        logger.debug(f"Stored {len(data)} bytes at {path} ({content_type})")

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete file from storage: {e}") from e

    async def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    async def presigned_get(self, key: str, ttl: timedelta, download_filename: str) -> str:
        path = self._path(key)
        if not path.is_file():
            raise StorageError(f"File not found in storage: {key}")
        # Local files do not expire; the URI is enough for development
        return path.as_uri()
