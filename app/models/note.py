from sqlalchemy import Column, DateTime, String, Text

from app.core.database import Base


class NoteRecord(Base):
    """Metadata record of a note; the attachment bytes live in the object store."""

    __tablename__ = "notes"

    # Assigned by the service, never by the client
    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # URL of the attachment object, absent when nothing was uploaded.
    # At most one note per object.
    attachment_ref = Column(String(2048), nullable=True, unique=True)
