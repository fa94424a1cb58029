"""Blob store protocol. Application layer depends on this; infrastructure implements it."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol


@dataclass(frozen=True)
class BlobInfo:
    """Listing entry for a stored blob. upload_date is set by the store on close."""

    id: str
    filename: str
    length: int
    upload_date: datetime
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class WriteHandle:
    """
    Per-request write buffer. Nothing is visible to readers until the store
    commits it on close(); abort() discards it.
    """

    filename: str
    metadata: Optional[Dict[str, Any]] = None
    chunks: List[bytes] = field(default_factory=list)
    length: int = 0
    closed: bool = False

    def append(self, data: bytes) -> None:
        if self.closed:
            raise ValueError("write handle is closed")
        self.chunks.append(bytes(data))
        self.length += len(data)


class ReadHandle(Protocol):
    """Lazy, finite, non-restartable chunk sequence. Must be closed on every exit path."""

    info: BlobInfo

    def chunks(self) -> AsyncIterator[bytes]: ...
    async def close(self) -> None: ...
    async def __aenter__(self) -> "ReadHandle": ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...


class BlobStore(Protocol):
    """Named opaque byte streams with automatic upload timestamp. Raises DocumentNotFoundError / StoreError."""

    async def open_for_write(self, filename: str, metadata: Optional[Dict[str, Any]] = None) -> WriteHandle:
        ...

    async def write(self, handle: WriteHandle, data: bytes) -> None:
        ...

    async def close(self, handle: WriteHandle) -> str:
        """Commit the buffered chunks atomically and return the new identifier."""
        ...

    async def abort(self, handle: WriteHandle) -> None:
        ...

    async def open_for_read(self, blob_id: str) -> ReadHandle:
        ...

    async def stat(self, blob_id: str) -> BlobInfo:
        ...

    async def list(self) -> List[BlobInfo]:
        """All blobs, newest upload first."""
        ...

    async def delete(self, blob_id: str) -> None:
        ...
