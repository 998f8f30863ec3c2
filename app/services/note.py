from datetime import datetime, timezone
from typing import AsyncIterator, Callable, List, Optional
from uuid import uuid4

import structlog

from app.core.exceptions import (
    AttachmentInUseError,
    MetadataWriteError,
    NoteValidationError,
    ObjectDeleteError,
    ObjectNotFoundError,
    UploadTooLargeError,
)
from app.schemas.note import ATTACHMENT_REF_MAX_LENGTH, TITLE_MAX_LENGTH, Note
from app.services.upload import build_attachment_key
from app.stores.base import MetadataStore, ObjectStore
from app.utils.validation import is_blank, validate_mime_type, validate_url_format

logger = structlog.get_logger(__name__)

DEFAULT_MAX_UPLOAD_SIZE = 10485760  # 10MB


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_note_id() -> str:
    return str(uuid4())


class NoteService:
    """Keeps note records and their attachment objects consistent.

    There is no transaction spanning both stores. Writes and deletes are
    ordered so that a failure half way leaves at worst an orphaned object,
    never a record pointing at a deleted object.
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        object_store: ObjectStore,
        max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE,
        allowed_types: Optional[List[str]] = None,
        id_factory: Callable[[], str] = _new_note_id,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.metadata_store = metadata_store
        self.object_store = object_store
        self.max_upload_size = max_upload_size
        self.allowed_types = allowed_types or []
        self.id_factory = id_factory
        self.clock = clock

    def _validate(
        self, title: str, content: str, attachment_ref: Optional[str] = None
    ) -> None:
        if is_blank(title):
            raise NoteValidationError("Title is required")
        if len(title) > TITLE_MAX_LENGTH:
            raise NoteValidationError(
                f"Title must be at most {TITLE_MAX_LENGTH} characters"
            )
        if is_blank(content):
            raise NoteValidationError("Content is required")
        if attachment_ref is None:
            return
        if len(attachment_ref) > ATTACHMENT_REF_MAX_LENGTH:
            raise NoteValidationError(
                f"Attachment reference must be at most {ATTACHMENT_REF_MAX_LENGTH} characters"
            )
        if not validate_url_format(attachment_ref):
            raise NoteValidationError("Attachment reference must be a URL")
        # Only the canonical URL of a key under the attachment prefix
        key = self.object_store.key_for(attachment_ref)
        if key is None or self.object_store.url_for(key) != attachment_ref:
            raise NoteValidationError(
                "Attachment reference must point at an uploaded attachment"
            )

    async def create_note(
        self, title: str, content: str, attachment_ref: Optional[str] = None
    ) -> Note:
        """Create a note whose attachment, if any, was already uploaded.

        Performs exactly one metadata write and no object store call. An
        attachment can belong to one note only.
        """
        self._validate(title, content, attachment_ref)
        if attachment_ref is not None:
            owner = await self.metadata_store.find_by_attachment(attachment_ref)
            if owner is not None:
                logger.warning(
                    "Attachment already in use",
                    attachment_ref=attachment_ref,
                    note_id=owner.id,
                )
                raise AttachmentInUseError()

        note = Note(
            id=self.id_factory(),
            title=title,
            content=content,
            created_at=self.clock(),
            attachment_ref=attachment_ref,
        )
        await self.metadata_store.put(note)

        logger.info(
            "Note created",
            note_id=note.id,
            has_attachment=attachment_ref is not None,
        )
        return note

    async def create_note_with_attachment(
        self,
        title: str,
        content: str,
        file_name: str,
        content_type: str,
        body: bytes,
    ) -> Note:
        """Upload an attachment under the new note's namespace, then write the record.

        If the record write fails the uploaded object is removed again.
        """
        self._validate(title, content)
        if is_blank(file_name):
            raise NoteValidationError("File name is required")
        if not validate_mime_type(content_type, self.allowed_types):
            raise NoteValidationError(f"Unsupported file type: {content_type}")
        if len(body) > self.max_upload_size:
            raise UploadTooLargeError()

        note_id = self.id_factory()
        key = build_attachment_key(note_id, file_name)
        await self.object_store.put(key, body, content_type)

        note = Note(
            id=note_id,
            title=title,
            content=content,
            created_at=self.clock(),
            attachment_ref=self.object_store.url_for(key),
        )
        try:
            await self.metadata_store.put(note)
        except MetadataWriteError:
            await self._discard_object(key)
            raise

        logger.info("Note created with attachment", note_id=note.id, object_key=key)
        return note

    async def get_note(self, note_id: str) -> Optional[Note]:
        """Get a note by id; the attachment reference is not checked."""
        note = await self.metadata_store.get(note_id)
        if note is None:
            logger.warning("Note not found", note_id=note_id)
        return note

    async def list_notes(self) -> AsyncIterator[Note]:
        """Yield every stored note once, in store order."""
        count = 0
        async for note in self.metadata_store.scan():
            count += 1
            yield note
        logger.info("Retrieved notes", count=count)

    async def delete_note(self, note_id: str) -> bool:
        """Delete a note and its attachment; False when the note does not exist.

        The attachment goes first. Failing to delete it is logged and does not
        stop the record from being removed.
        """
        note = await self.metadata_store.get(note_id)
        if note is None:
            logger.warning("Note not found for deletion", note_id=note_id)
            return False

        if note.attachment_ref:
            await self._delete_attachment(note)

        if not await self.metadata_store.delete(note_id):
            # Lost a race with a concurrent delete; the note is gone either way
            logger.info("Note record already removed", note_id=note_id)

        logger.info("Note deleted", note_id=note_id)
        return True

    async def _delete_attachment(self, note: Note) -> None:
        key = self.object_store.key_for(note.attachment_ref)
        if key is None:
            logger.warning(
                "Attachment reference is outside the object store, skipping",
                note_id=note.id,
                attachment_ref=note.attachment_ref,
            )
            return

        try:
            await self.object_store.delete(key)
        except ObjectNotFoundError:
            logger.warning("Attachment already deleted", note_id=note.id, object_key=key)
        except ObjectDeleteError as e:
            logger.warning(
                "Failed to delete attachment, deleting note anyway",
                note_id=note.id,
                object_key=key,
                error=e.code,
            )

    async def _discard_object(self, key: str) -> None:
        try:
            await self.object_store.delete(key)
        except ObjectDeleteError as e:
            logger.warning("Failed to discard orphaned attachment", object_key=key, error=e.code)
