from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.s3 import get_s3_client
from app.services.note import NoteService
from app.services.upload import UploadCredentialService
from app.stores.base import MetadataStore, ObjectStore
from app.stores.metadata import SQLAlchemyMetadataStore
from app.stores.objects import S3ObjectStore


def get_metadata_store(db: AsyncSession = Depends(get_db)) -> MetadataStore:
    """Metadata store scoped to the request's database session."""
    return SQLAlchemyMetadataStore(db)


def get_object_store() -> ObjectStore:
    """Object store for the configured attachments bucket."""
    return S3ObjectStore(
        get_s3_client(),
        bucket=settings.NOTES_BUCKET_NAME,
        region=settings.AWS_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        public_base_url=settings.ATTACHMENT_BASE_URL,
    )


def get_note_service(
    metadata_store: MetadataStore = Depends(get_metadata_store),
    object_store: ObjectStore = Depends(get_object_store),
) -> NoteService:
    return NoteService(
        metadata_store,
        object_store,
        max_upload_size=settings.MAX_UPLOAD_SIZE,
        allowed_types=settings.ALLOWED_UPLOAD_TYPES,
    )


def get_upload_service(
    object_store: ObjectStore = Depends(get_object_store),
) -> UploadCredentialService:
    return UploadCredentialService(
        object_store,
        expires_in=settings.UPLOAD_URL_EXPIRE_SECONDS,
        allowed_types=settings.ALLOWED_UPLOAD_TYPES,
    )
