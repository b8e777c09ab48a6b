"""Object storage for cover images and avatars."""

from __future__ import annotations

import logging

import httpx
from supabase import AsyncClient, StorageException

from rheteurs import db
from rheteurs.errors import UploadError

logger = logging.getLogger(__name__)


def _storage_message(exc: StorageException) -> str:
    """StorageException carries the JSON error body as its first argument."""
    detail = exc.args[0] if exc.args else None
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("error") or detail)
    return str(exc)


class ImageStore:
    """Uploads to public buckets. Keys are chosen by the caller."""

    def __init__(self, client: AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> AsyncClient:
        return self._client or db.get_client()

    async def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """
        Upload a blob and return its public URL.

        Args:
            bucket: Bucket name (covers, avatars)
            key: Object key inside the bucket
            data: File contents
            content_type: MIME type stored with the object

        Returns:
            Public URL of the uploaded object

        Raises:
            UploadError: With the storage message verbatim
        """
        proxy = self.client.storage.from_(bucket)
        try:
            await proxy.upload(key, data, {"content-type": content_type})
        except StorageException as e:
            message = _storage_message(e)
            logger.warning("Upload to %s/%s failed: %s", bucket, key, message)
            raise UploadError(message) from e
        except httpx.HTTPError as e:
            logger.warning("Upload to %s/%s failed: %s", bucket, key, e)
            raise UploadError(str(e)) from e
        return await proxy.get_public_url(key)
