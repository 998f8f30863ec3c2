from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class UploadCredentialRequest(BaseModel):
    """Schema for requesting a presigned upload URL."""

    # camelCase names are accepted for browser clients
    file_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("file_name", "fileName"),
        description="Original file name",
    )
    file_type: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("file_type", "fileType"),
        description="Declared MIME type",
    )


class UploadCredential(BaseModel):
    """Time-limited capability for one direct upload to the object store."""

    upload_url: str = Field(..., description="Presigned PUT URL")
    expires_at: datetime = Field(..., description="When the upload URL stops working")
    object_key: str = Field(..., description="Key the object will be stored under")
    attachment_ref: str = Field(
        ..., description="Reference to pass as attachment_ref when creating the note"
    )


class UploadCredentialResponse(UploadCredential):
    """Schema for presigned upload responses."""

    pass
