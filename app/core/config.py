from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """Application settings."""

    # Basic settings
    PROJECT_NAME: str = "Notes API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Metadata store
    DATABASE_URL: str = "sqlite+aiosqlite:///./notes.db"

    # Object store (S3 or any S3-compatible endpoint)
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None
    NOTES_BUCKET_NAME: str = "notes-attachments"
    # Public base URL for attachment links, e.g. a CDN in front of the bucket
    ATTACHMENT_BASE_URL: Optional[str] = None

    # Uploads
    UPLOAD_URL_EXPIRE_SECONDS: int = 300
    MAX_UPLOAD_SIZE: int = 10485760  # 10MB
    ALLOWED_UPLOAD_TYPES: Annotated[list[str], NoDecode] = []

    # CORS
    ALLOWED_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    @field_validator("ALLOWED_ORIGINS", "ALLOWED_UPLOAD_TYPES", mode="before")
    @classmethod
    def assemble_list(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {"env_file": ".env", "case_sensitive": True}


# Global settings instance
settings = Settings()
