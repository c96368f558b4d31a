"""
Blob storage for raw GPX files.

Usage:
    from routebase.storage import build_blob_store, generate_object_key
"""

from routebase.config import Settings
from routebase.shared.errors import StorageError
from .base import BlobStore, GPX_CONTENT_TYPE
from .keys import generate_object_key, generate_download_filename
from .local import LocalBlobStore
from .s3 import S3BlobStore


def build_blob_store(settings: Settings) -> BlobStore:
    """Create the blob store selected by settings.blob_backend."""
    if settings.blob_backend == "s3":
        if not settings.s3_bucket_name:
            raise StorageError("S3 blob backend selected but S3_BUCKET_NAME is not set")
        return S3BlobStore(
            bucket_name=settings.s3_bucket_name,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            region=settings.s3_region,
        )
    return LocalBlobStore(settings.blob_local_dir)


__all__ = [
    "BlobStore",
    "GPX_CONTENT_TYPE",
    "LocalBlobStore",
    "S3BlobStore",
    "build_blob_store",
    "generate_object_key",
    "generate_download_filename",
]
