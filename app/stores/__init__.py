from app.stores.base import MetadataStore, ObjectStore
from app.stores.metadata import SQLAlchemyMetadataStore
from app.stores.objects import S3ObjectStore

__all__ = [
    "MetadataStore",
    "ObjectStore",
    "S3ObjectStore",
    "SQLAlchemyMetadataStore",
]
