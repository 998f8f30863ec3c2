"""Failure kinds raised by the note stores and services.

Every error carries a machine-readable ``code``, the HTTP status the API
answers with, and a short public message. Backend details stay in the logs.
"""

from fastapi import status


class NoteServiceError(Exception):
    """Base class for all note persistence failures."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class NoteValidationError(NoteServiceError):
    """Bad input; raised before any backend call."""

    code = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid note data"


class UploadTooLargeError(NoteValidationError):
    code = "upload_too_large"
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    message = "Attachment exceeds the maximum upload size"


class AttachmentInUseError(NoteValidationError):
    """The attachment reference already belongs to another note."""

    code = "attachment_in_use"
    status_code = status.HTTP_409_CONFLICT
    message = "Attachment is already used by another note"


class NoteNotFoundError(NoteServiceError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Note not found"


class CredentialIssuanceError(NoteServiceError):
    code = "credential_issuance_failed"
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Failed to issue upload URL"


class MetadataWriteError(NoteServiceError):
    code = "metadata_write_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to save note"


class MetadataReadError(NoteServiceError):
    code = "metadata_read_failed"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Failed to fetch notes"


class MetadataDeleteError(NoteServiceError):
    code = "metadata_delete_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to delete note"


class ObjectWriteError(NoteServiceError):
    code = "object_write_failed"
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Failed to store attachment"


class ObjectDeleteError(NoteServiceError):
    """Soft failure: logged by the delete flow, never surfaced."""

    code = "object_delete_failed"
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Failed to delete attachment"


class ObjectNotFoundError(ObjectDeleteError):
    code = "object_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Attachment not found"
