"""In-memory chunked blob store. For tests or single-node development."""

import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from docvault.application.blob_store import BlobInfo, WriteHandle
from docvault.application.exceptions import StoreError
from docvault.domain.exceptions import DocumentNotFoundError

DEFAULT_CHUNK_SIZE = 255 * 1024


@dataclass(frozen=True)
class _StoredBlob:
    info: BlobInfo
    chunks: tuple[bytes, ...]


class MemoryReadHandle:
    def __init__(self, blob: _StoredBlob) -> None:
        self.info = blob.info
        self._chunks = blob.chunks
        self._consumed = False
        self.closed = False

    async def chunks(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("read handle already consumed; open a new one to re-read")
        self._consumed = True
        for chunk in self._chunks:
            if self.closed:
                return
            yield chunk

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "MemoryReadHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class InMemoryBlobStore:
    """Implements BlobStore protocol with a dict. Writes become visible atomically on close()."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size
        self._blobs: dict[str, _StoredBlob] = {}
        self._lock = threading.Lock()

    async def open_for_write(self, filename: str, metadata: Optional[Dict[str, Any]] = None) -> WriteHandle:
        return WriteHandle(filename=filename, metadata=metadata)

    async def write(self, handle: WriteHandle, data: bytes) -> None:
        handle.append(data)

    async def abort(self, handle: WriteHandle) -> None:
        handle.chunks.clear()
        handle.closed = True

    async def close(self, handle: WriteHandle) -> str:
        if handle.closed:
            raise StoreError("write handle is already closed")
        handle.closed = True
        data = b"".join(handle.chunks)
        handle.chunks.clear()
        pieces = tuple(
            data[i: i + self._chunk_size] for i in range(0, len(data), self._chunk_size)
        ) or (b"",)
        blob_id = uuid.uuid4().hex
        info = BlobInfo(
            id=blob_id,
            filename=handle.filename,
            length=len(data),
            upload_date=datetime.now(timezone.utc),
            metadata=dict(handle.metadata) if handle.metadata else None,
        )
        with self._lock:
            self._blobs[blob_id] = _StoredBlob(info=info, chunks=pieces)
        return blob_id

    def _get(self, blob_id: str) -> _StoredBlob:
        with self._lock:
            blob = self._blobs.get(blob_id)
        if blob is None:
            raise DocumentNotFoundError("File not found")
        return blob

    async def stat(self, blob_id: str) -> BlobInfo:
        return self._get(blob_id).info

    async def open_for_read(self, blob_id: str) -> MemoryReadHandle:
        return MemoryReadHandle(self._get(blob_id))

    async def list(self) -> List[BlobInfo]:
        with self._lock:
            infos = [b.info for b in self._blobs.values()]
        return sorted(infos, key=lambda i: i.upload_date, reverse=True)

    async def delete(self, blob_id: str) -> None:
        with self._lock:
            if self._blobs.pop(blob_id, None) is None:
                raise DocumentNotFoundError("File not found")
