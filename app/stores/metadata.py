from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    MetadataDeleteError,
    MetadataReadError,
    MetadataWriteError,
)
from app.models.note import NoteRecord
from app.schemas.note import Note

logger = structlog.get_logger(__name__)


class SQLAlchemyMetadataStore:
    """Metadata store backed by the ``notes`` table, bound to one session."""

    def __init__(self, db: AsyncSession, scan_batch_size: int = 100):
        self.db = db
        self.scan_batch_size = scan_batch_size

    async def put(self, note: Note) -> None:
        """Insert a note record."""
        try:
            self.db.add(NoteRecord(**note.model_dump()))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to write note record", note_id=note.id, error=str(e))
            raise MetadataWriteError() from e

    async def get(self, note_id: str) -> Optional[Note]:
        """Get a note record by id."""
        try:
            result = await self.db.execute(
                select(NoteRecord).where(NoteRecord.id == note_id)
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to read note record", note_id=note_id, error=str(e))
            raise MetadataReadError("Failed to fetch note") from e

        if record is None:
            return None
        return Note.model_validate(record)

    async def delete(self, note_id: str) -> bool:
        """Delete a note record; False when no row matched."""
        try:
            result = await self.db.execute(
                delete(NoteRecord).where(NoteRecord.id == note_id)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Failed to delete note record", note_id=note_id, error=str(e)
            )
            raise MetadataDeleteError() from e

        return result.rowcount > 0

    async def find_by_attachment(self, attachment_ref: str) -> Optional[Note]:
        """Get the note holding an attachment reference, if any."""
        try:
            result = await self.db.execute(
                select(NoteRecord).where(NoteRecord.attachment_ref == attachment_ref)
            )
            record = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(
                "Failed to look up attachment reference",
                attachment_ref=attachment_ref,
                error=str(e),
            )
            raise MetadataReadError("Failed to fetch note") from e

        if record is None:
            return None
        return Note.model_validate(record)

    async def scan(self) -> AsyncIterator[Note]:
        """Stream every note record in table order."""
        try:
            result = await self.db.stream_scalars(
                select(NoteRecord).execution_options(yield_per=self.scan_batch_size)
            )
        except SQLAlchemyError as e:
            logger.error("Failed to scan note records", error=str(e))
            raise MetadataReadError() from e

        try:
            async for record in result:
                yield Note.model_validate(record)
        except SQLAlchemyError as e:
            logger.error("Failed to scan note records", error=str(e))
            raise MetadataReadError() from e
        finally:
            await result.close()
