from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.api.deps.stores import get_note_service
from app.core.config import settings
from app.core.exceptions import NoteNotFoundError
from app.schemas.note import NoteCreate, NoteDeleteResponse, NoteResponse
from app.services.note import NoteService

router = APIRouter()


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: NoteCreate,
    note_service: NoteService = Depends(get_note_service),
):
    """Create a note; attach a file by passing the attachment_ref of a presigned upload."""
    return await note_service.create_note(
        note_data.title, note_data.content, note_data.attachment_ref
    )


@router.post(
    "/upload", response_model=NoteResponse, status_code=status.HTTP_201_CREATED
)
async def create_note_with_upload(
    title: str = Form(..., min_length=1, max_length=255),
    content: str = Form(...),
    file: UploadFile = File(..., description="Attachment uploaded through the API"),
    note_service: NoteService = Depends(get_note_service),
):
    """Create a note from a multipart form, storing the attached file."""
    # One byte over the limit is enough to reject the upload
    body = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    return await note_service.create_note_with_attachment(
        title,
        content,
        file.filename or "",
        file.content_type or "application/octet-stream",
        body,
    )


@router.get("", response_model=list[NoteResponse])
async def list_notes(note_service: NoteService = Depends(get_note_service)):
    """List all notes."""
    return [note async for note in note_service.list_notes()]


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    note_service: NoteService = Depends(get_note_service),
):
    """Get a note by ID."""
    note = await note_service.get_note(note_id)
    if not note:
        raise NoteNotFoundError()
    return note


@router.delete("/{note_id}", response_model=NoteDeleteResponse)
async def delete_note(
    note_id: str,
    note_service: NoteService = Depends(get_note_service),
):
    """Delete a note together with its attachment."""
    if not await note_service.delete_note(note_id):
        raise NoteNotFoundError()
    return NoteDeleteResponse(id=note_id, message=f"Note {note_id} deleted")
