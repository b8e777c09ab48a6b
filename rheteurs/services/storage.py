"""Image upload service for covers and avatars."""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid

from rheteurs.errors import UploadError
from rheteurs.repos.storage_repo import ImageStore

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def random_key(filename: str, prefix: str | None = None) -> str:
    """
    Build a collision-free object key that keeps the file extension.

    Args:
        filename: Original file name, only its extension is used
        prefix: Optional folder, e.g. the user id for avatars

    Returns:
        Key such as ``"3f2c...e1.jpg"`` or ``"<prefix>/3f2c...e1.jpg"``
    """
    ext = os.path.splitext(filename)[1].lower()
    key = f"{uuid.uuid4().hex}{ext}"
    return f"{prefix}/{key}" if prefix else key


class ImageUploader:
    """
    Uploads one image at a time to a bucket.

    ``busy`` is set for the duration of an upload; a second submission
    while busy is refused instead of queued.
    """

    def __init__(self, bucket: str, store: ImageStore | None = None) -> None:
        self.bucket = bucket
        self.store = store or ImageStore()
        self.busy = False

    async def upload(self, filename: str, data: bytes, prefix: str | None = None) -> str:
        """
        Upload an image and return its public URL.

        Raises:
            UploadError: If an upload is already running, the file is empty,
                or storage rejects it
        """
        if self.busy:
            raise UploadError("Un envoi est déjà en cours.")
        if not data:
            raise UploadError("Sélectionnez une image.")

        key = random_key(filename, prefix)
        content_type = mimetypes.guess_type(filename)[0] or DEFAULT_CONTENT_TYPE
        self.busy = True
        try:
            url = await self.store.upload(self.bucket, key, data, content_type)
        finally:
            self.busy = False
        logger.info("Uploaded %s to %s/%s", filename, self.bucket, key)
        return url
