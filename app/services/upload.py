from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import uuid4

import structlog

from app.core.exceptions import NoteValidationError
from app.schemas.upload import UploadCredential
from app.stores.base import ATTACHMENT_PREFIX, ObjectStore
from app.utils.validation import is_blank, sanitize_file_name, validate_mime_type

logger = structlog.get_logger(__name__)

DEFAULT_EXPIRE_SECONDS = 300


def build_attachment_key(namespace: str, file_name: str) -> str:
    """Object key for an attachment: ``notes/<namespace>/<file name>``."""
    return f"{ATTACHMENT_PREFIX}/{namespace}/{sanitize_file_name(file_name)}"


class UploadCredentialService:
    """Issues presigned URLs so clients upload attachments straight to the object store."""

    def __init__(
        self,
        object_store: ObjectStore,
        expires_in: int = DEFAULT_EXPIRE_SECONDS,
        allowed_types: Optional[List[str]] = None,
        clock: Callable[[], datetime] = None,
    ):
        self.object_store = object_store
        self.expires_in = expires_in
        self.allowed_types = allowed_types or []
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def issue_upload_credential(
        self, file_name: str, content_type: str
    ) -> UploadCredential:
        """Presign one PUT under a fresh namespace.

        The note does not exist yet, so the namespace is a random token rather
        than the note id. The content type is declared, not verified.
        """
        if is_blank(file_name):
            raise NoteValidationError("File name is required")
        if not validate_mime_type(content_type, self.allowed_types):
            raise NoteValidationError(f"Unsupported file type: {content_type}")

        key = build_attachment_key(uuid4().hex, file_name)
        issued_at = self.clock()
        upload_url = await self.object_store.presign_put(
            key, content_type, self.expires_in
        )

        logger.info(
            "Upload credential issued",
            object_key=key,
            content_type=content_type,
            expires_in=self.expires_in,
        )
        return UploadCredential(
            upload_url=upload_url,
            expires_at=issued_at + timedelta(seconds=self.expires_in),
            object_key=key,
            attachment_ref=self.object_store.url_for(key),
        )
