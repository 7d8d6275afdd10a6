"""
Attachment uploader - stores the optional report photo in Cloud Storage.
"""

import logging
import time
from typing import Optional

from pydantic import BaseModel

from uerra.config.backend import BackendClient, BackendError
from uerra.core.errors import AttachmentError
from uerra.core.settings import settings

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class Attachment(BaseModel):
    """A file as received from the dashboard upload field."""
    filename: str = ""
    content_type: Optional[str] = None
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        # Derived from the checked content type; the client filename never reaches the storage path
        return _EXTENSIONS.get((self.content_type or "").lower(), "bin")


class StoredAttachment(BaseModel):
    path: str
    url: str


class AttachmentUploader:

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def check(self, attachment: Attachment) -> None:
        """Enforce size and type limits."""
        if attachment.size > settings.MAX_ATTACHMENT_BYTES:
            limit_mb = settings.MAX_ATTACHMENT_BYTES // (1024 * 1024)
            raise AttachmentError(f"Photo file size must be less than {limit_mb}MB")

        if (attachment.content_type or "").lower() not in settings.allowed_attachment_types:
            raise AttachmentError("Only JPEG, PNG, and WebP images are allowed")

    def upload(self, attachment: Optional[Attachment], user_id: str) -> Optional[StoredAttachment]:
        """
        Store a report photo under a name unique per user and submission time.

        An absent or empty file is a no-op and returns None.

        Raises:
            AttachmentError: file rejected or the upload failed
        """
        if attachment is None or attachment.size == 0:
            return None

        self.check(attachment)

        timestamp = int(time.time() * 1000)
        path = f"{settings.ATTACHMENT_PREFIX}/{user_id}_{timestamp}.{attachment.extension}"

        try:
            url = self.backend.upload_blob(path, attachment.data, attachment.content_type.lower())
        except BackendError as e:
            logger.error(f"Photo upload failed for {path}: {e}", exc_info=True)
            raise AttachmentError(f"Failed to upload photo: {e}")

        logger.info(f"Photo uploaded: {path} ({attachment.size} bytes)")
        return StoredAttachment(path=path, url=url)

    def discard(self, stored: StoredAttachment) -> bool:
        """Delete a stored photo. Best effort: failures are logged, never raised."""
        try:
            self.backend.delete_blob(stored.path)
        except BackendError as e:
            logger.warning(f"Could not delete orphaned photo {stored.path}: {e}")
            return False

        logger.info(f"Deleted orphaned photo {stored.path}")
        return True
