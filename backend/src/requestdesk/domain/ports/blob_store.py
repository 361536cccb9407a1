"""Blob Store Port - Domain interface for attachment file storage.

The engine never handles file bytes: the API layer stores the upload through
this port and the request only keeps the returned reference.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod


class BlobStoreError(Exception):
    """Raised when a blob cannot be stored or read."""


def attachment_path(request_id: str, filename: str) -> str:
    """Storage path of an attachment: ``requests/{request_id}/{filename}``."""
    safe_name = filename.replace("/", "_").replace("\\", "_").strip() or "file"
    return f"requests/{request_id}/{safe_name}"


class BlobStorePort(ABC):
    """Port interface for attachment storage.

    Implementations: S3BlobStore (S3/MinIO), MemoryBlobStore (tests, dev).
    """

    @abstractmethod
    async def put(self, data: bytes, path: str, mime_type: str) -> str:
        """Store ``data`` at ``path`` and return a reference (URL) to it.

        Storing again at the same path overwrites the previous content.

        Raises:
            ValueError: If data is empty
            BlobStoreError: If the backend rejects the write
        """

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """Return the stored bytes.

        Raises:
            FileNotFoundError: If nothing is stored at path
            BlobStoreError: If the backend fails
        """
