"""In-process BlobStorePort for development and tests."""

from typing import Dict

from ...domain.ports.blob_store import BlobStorePort


class MemoryBlobStore(BlobStorePort):

    def __init__(self, base_url: str = "memory://blobs"):
        self.base_url = base_url.rstrip("/")
        self.blobs: Dict[str, bytes] = {}
        self.mime_types: Dict[str, str] = {}

    async def put(self, data: bytes, path: str, mime_type: str) -> str:
        if not data:
            raise ValueError("Cannot store empty file")
        self.blobs[path] = bytes(data)
        self.mime_types[path] = mime_type
        return f"{self.base_url}/{path}"

    async def get(self, path: str) -> bytes:
        if path not in self.blobs:
            raise FileNotFoundError(f"File not found: {path}")
        return self.blobs[path]
