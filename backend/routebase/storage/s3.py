"""
S3 Storage Backend.

Stores raw GPX files in S3 or an S3-compatible service (Cloudflare R2 via a
custom endpoint). boto3 is blocking, so every call runs in a worker thread.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from routebase.shared.errors import StorageError
from .base import BlobStore

logger = logging.getLogger(__name__)


class S3BlobStore(BlobStore):
    """Blob store on an S3 bucket."""

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = "auto",
        client=None,
    ):
        """
        Initialize S3 storage backend.

        Args:
            bucket_name: Target bucket
            endpoint_url: Custom endpoint (e.g. https://<account>.r2.cloudflarestorage.com)
            access_key_id: Access key; None uses the default credential chain
            secret_access_key: Secret key
            region: Signing region ("auto" for R2)
            client: Prebuilt boto3 S3 client (tests)
        """
        self.bucket_name = bucket_name
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
        )
        logger.info(f"S3 client initialized for bucket: {bucket_name}")

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {key} to S3: {e}")
            raise StorageError(f"Failed to upload file to storage: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(
                self.s3_client.delete_object,
                Bucket=self.bucket_name,
                Key=key,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete {key} from S3: {e}")
            raise StorageError(f"Failed to delete file from storage: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(
                self.s3_client.head_object,
                Bucket=self.bucket_name,
                Key=key,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageError(f"Failed to check file existence: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to check file existence: {e}") from e
        return True

    async def presigned_get(self, key: str, ttl: timedelta, download_filename: str) -> str:
        try:
            return await asyncio.to_thread(
                self.s3_client.generate_presigned_url,
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                    "ResponseContentDisposition": f'attachment; filename="{download_filename}"',
                },
                ExpiresIn=int(ttl.total_seconds()),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate presigned URL for {key}: {e}")
            raise StorageError(f"Failed to generate file access URL: {e}") from e
