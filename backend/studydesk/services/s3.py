"""S3 service for note file storage."""

import asyncio
import logging
from collections.abc import Sequence
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from studydesk.config import Settings, get_settings
from studydesk.errors import NotConfigured, RemoteFailure

logger = logging.getLogger(__name__)


class S3ObjectStorage:
    """Object storage backed by AWS S3 or any S3-compatible endpoint."""

    def __init__(self, settings: Settings | None = None):
        """Initialize S3 client with credentials from settings. No client is created without a bucket."""
        self.settings = settings or get_settings()
        self.bucket = self.settings.aws_s3_bucket
        self.s3_client = None
        if not self.bucket:
            logger.warning("S3 bucket not configured; note uploads are disabled")
            return

        client_kwargs = {"region_name": self.settings.aws_s3_region}
        # Fall back to the default credential chain when keys aren't set
        if self.settings.aws_access_key_id and self.settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = self.settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = self.settings.aws_secret_access_key
        # Support MinIO / LocalStack / Supabase by pointing to a custom endpoint
        if self.settings.aws_s3_endpoint_url:
            client_kwargs["endpoint_url"] = self.settings.aws_s3_endpoint_url

        self.s3_client = boto3.client("s3", **client_kwargs)

    @property
    def configured(self) -> bool:
        return self.s3_client is not None

    def _require_client(self):
        if self.s3_client is None:
            raise NotConfigured("Note storage is disabled: S3 is not configured.")
        return self.s3_client

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload a file to S3.

        Args:
            path: S3 object key
            data: Raw bytes of the file
            content_type: MIME type stored with the object

        Returns:
            The stored object key

        Raises:
            NotConfigured: If no bucket is configured
            RemoteFailure: If the S3 operation fails
        """
        client = self._require_client()
        try:
            await asyncio.to_thread(
                client.put_object,
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
                CacheControl=self.settings.notes_cache_control,
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteFailure(f"Upload failed: {e}") from e
        return path

    def get_public_url(self, path: str) -> str:
        """Public URL of a stored object."""
        key = quote(path)
        if self.settings.aws_s3_public_base_url:
            return f"{self.settings.aws_s3_public_base_url.rstrip('/')}/{key}"
        if self.settings.aws_s3_endpoint_url:
            return f"{self.settings.aws_s3_endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.settings.aws_s3_region}.amazonaws.com/{key}"

    async def remove(self, paths: Sequence[str]) -> None:
        """
        Delete objects from S3.

        Raises:
            RemoteFailure: If the request fails or any key could not be deleted
        """
        client = self._require_client()
        if not paths:
            return
        try:
            response = await asyncio.to_thread(
                client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": path} for path in paths], "Quiet": True},
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteFailure(f"Failed to delete from storage: {e}") from e

        errors = response.get("Errors") or []
        if errors:
            failed = ", ".join(err.get("Key", "?") for err in errors)
            raise RemoteFailure(f"Failed to delete from storage: {failed}")
