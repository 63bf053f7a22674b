"""Supabase Storage client for evidence photos."""

import asyncio
import logging

from supabase import Client, create_client

from safecheck.config import settings
from safecheck.errors import StorageFailure

logger = logging.getLogger(__name__)


class ObjectStorage:
    """
    Stores evidence bytes in a Supabase Storage bucket and hands back public URLs.

    The supabase client is synchronous; calls run in a worker thread so the
    event loop is not blocked while a photo uploads.
    """

    def __init__(self, bucket: str, client: Client | None = None):
        self.bucket = bucket
        self._client = client

    @classmethod
    def from_settings(cls) -> "ObjectStorage":
        return cls(settings.storage_bucket)

    @property
    def client(self) -> Client:
        """Supabase client, created on first use from SUPABASE_URL / SUPABASE_SERVICE_KEY."""
        if self._client is None:
            if not settings.supabase_url or not settings.supabase_service_key:
                raise StorageFailure(
                    "Supabase credentials not configured. "
                    "Set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables."
                )
            self._client = create_client(settings.supabase_url, settings.supabase_service_key)
        return self._client

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def _upload_sync(self, path: str, content: bytes, content_type: str) -> str:
        bucket = self._bucket()
        bucket.upload(
            path=path,
            file=content,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        url = bucket.get_public_url(path)
        if not url:
            raise StorageFailure(f"No public URL for {path}")
        return url

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload content to path and return its public URL."""
        try:
            return await asyncio.to_thread(self._upload_sync, path, content, content_type)
        except StorageFailure:
            raise
        except Exception as e:
            logger.error("Upload to %s/%s failed: %s", self.bucket, path, e)
            raise StorageFailure(f"Failed to upload {path}") from e

    async def remove(self, path: str) -> None:
        """Delete the object at path."""
        try:
            await asyncio.to_thread(self._bucket().remove, [path])
        except Exception as e:
            logger.error("Removing %s/%s failed: %s", self.bucket, path, e)
            raise StorageFailure(f"Failed to remove {path}") from e
