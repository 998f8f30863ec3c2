from fastapi import APIRouter

from app.api.v1.endpoints import notes, uploads

api_router = APIRouter()

# Note management endpoints
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])

# Direct attachment upload endpoints
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
