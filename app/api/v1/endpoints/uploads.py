from fastapi import APIRouter, Depends

from app.api.deps.stores import get_upload_service
from app.schemas.upload import UploadCredentialRequest, UploadCredentialResponse
from app.services.upload import UploadCredentialService

router = APIRouter()


@router.post("/presign", response_model=UploadCredentialResponse)
async def create_upload_url(
    upload_request: UploadCredentialRequest,
    upload_service: UploadCredentialService = Depends(get_upload_service),
):
    """Issue a short-lived URL for uploading an attachment directly to storage."""
    return await upload_service.issue_upload_credential(
        upload_request.file_name, upload_request.file_type
    )
