from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

TITLE_MAX_LENGTH = 255
ATTACHMENT_REF_MAX_LENGTH = 2048


class NoteBase(BaseModel):
    """Base note schema with the client-supplied fields."""

    title: str = Field(
        ..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Note title"
    )
    content: str = Field(..., description="Note body text")
    attachment_ref: Optional[str] = Field(
        None,
        max_length=ATTACHMENT_REF_MAX_LENGTH,
        description="URL of an attachment already uploaded with a presigned URL",
    )


class NoteCreate(NoteBase):
    """Schema for creating a new note."""

    # fileUrl is what browser clients send
    attachment_ref: Optional[str] = Field(
        None,
        max_length=ATTACHMENT_REF_MAX_LENGTH,
        validation_alias=AliasChoices("attachment_ref", "fileUrl"),
        description="URL of an attachment already uploaded with a presigned URL",
    )


class Note(NoteBase):
    """A stored note, as returned by the metadata store."""

    id: str
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # SQLite drops tzinfo on the way back
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class NoteResponse(Note):
    """Schema for note responses."""

    pass


class NoteDeleteResponse(BaseModel):
    """Confirmation returned by a successful delete."""

    id: str
    message: str
