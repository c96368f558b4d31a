"""
Blob store interface.

Raw GPX files live in a blob store; the relational row only keeps the key.
Implementations raise StorageError for every provider failure.
"""

from abc import ABC, abstractmethod
from datetime import timedelta

GPX_CONTENT_TYPE = "application/gpx+xml"


class BlobStore(ABC):
    """Async key/value store for raw route files."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store data under key, replacing anything already there."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether key is present."""

    @abstractmethod
    async def presigned_get(self, key: str, ttl: timedelta, download_filename: str) -> str:
        """
        Temporary download URL for key.

        Args:
            key: Object key
            ttl: How long the URL stays valid
            download_filename: Filename offered to the browser
        """
