"""Capability interfaces of the two note backends.

The services only talk to these protocols, so the SQL and S3 adapters can be
swapped for in-memory fakes.
"""

from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from app.schemas.note import Note

# Every attachment object lives under this key prefix
ATTACHMENT_PREFIX = "notes"


@runtime_checkable
class MetadataStore(Protocol):
    """Key-value record storage keyed by note id."""

    async def put(self, note: Note) -> None:
        """Write a record. Raises MetadataWriteError."""
        ...

    async def get(self, note_id: str) -> Optional[Note]:
        """Point lookup; None when absent. Raises MetadataReadError."""
        ...

    async def delete(self, note_id: str) -> bool:
        """Remove a record; False when it was already gone. Raises MetadataDeleteError."""
        ...

    async def find_by_attachment(self, attachment_ref: str) -> Optional[Note]:
        """Record holding ``attachment_ref``, None if unused. Raises MetadataReadError."""
        ...

    def scan(self) -> AsyncIterator[Note]:
        """Lazily yield every record once, in store order. Raises MetadataReadError."""
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Blob storage keyed by path."""

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        """Raises ObjectWriteError."""
        ...

    async def delete(self, key: str) -> None:
        """Raises ObjectNotFoundError or ObjectDeleteError."""
        ...

    async def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        """Return a URL allowing one PUT of ``key``. Raises CredentialIssuanceError."""
        ...

    def url_for(self, key: str) -> str:
        """Dereferenceable URL of the object at ``key``."""
        ...

    def key_for(self, ref: str) -> Optional[str]:
        """Key under ATTACHMENT_PREFIX behind a reference; None if it is not ours."""
        ...
