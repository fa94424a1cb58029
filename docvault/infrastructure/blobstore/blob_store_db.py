"""DB-backed chunked blob store. One row per file, one row per chunk; read back lazily chunk by chunk."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.application.blob_store import BlobInfo, WriteHandle
from docvault.application.exceptions import StoreError
from docvault.domain.exceptions import DocumentNotFoundError
from docvault.infrastructure.database.models import BlobChunk, BlobFile
from docvault.infrastructure.database.repository import as_utc

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 255 * 1024


def _to_info(row: BlobFile) -> BlobInfo:
    return BlobInfo(
        id=row.id,
        filename=row.filename,
        length=row.length,
        upload_date=as_utc(row.upload_date),
        metadata=row.metadata_,
    )


def _split(data: bytes, chunk_size: int) -> List[bytes]:
    return [data[i: i + chunk_size] for i in range(0, len(data), chunk_size)] or [b""]


class SqlReadHandle:
    """Owns its own session; close() releases it. chunks() may be iterated once."""

    def __init__(self, session: AsyncSession, info: BlobInfo, chunk_count: int) -> None:
        self.info = info
        self._session = session
        self._chunk_count = chunk_count
        self._consumed = False

    async def chunks(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("read handle already consumed; open a new one to re-read")
        self._consumed = True
        for n in range(self._chunk_count):
            try:
                result = await self._session.execute(
                    select(BlobChunk.data).where(
                        BlobChunk.file_id == self.info.id,
                        BlobChunk.n == n,
                    )
                )
                data = result.scalar_one_or_none()
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to read blob chunk: {e}") from e
            if data is None:
                raise StoreError(f"Blob {self.info.id} is missing chunk {n}")
            yield data

    async def close(self) -> None:
        await self._session.close()

    async def __aenter__(self) -> "SqlReadHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class SqlBlobStore:
    """Implements BlobStore protocol on PostgreSQL (or SQLite for tests)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._session_factory = session_factory
        self._chunk_size = chunk_size

    async def open_for_write(self, filename: str, metadata: Optional[Dict[str, Any]] = None) -> WriteHandle:
        return WriteHandle(filename=filename, metadata=metadata)

    async def write(self, handle: WriteHandle, data: bytes) -> None:
        handle.append(data)

    async def abort(self, handle: WriteHandle) -> None:
        handle.chunks.clear()
        handle.closed = True

    async def close(self, handle: WriteHandle) -> str:
        """Insert file and chunk rows in one transaction. The id is returned only after commit."""
        if handle.closed:
            raise StoreError("write handle is already closed")
        handle.closed = True
        blob_id = uuid.uuid4().hex
        data = b"".join(handle.chunks)
        handle.chunks.clear()
        pieces = _split(data, self._chunk_size)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        BlobFile(
                            id=blob_id,
                            filename=handle.filename,
                            length=len(data),
                            chunk_size=self._chunk_size,
                            chunk_count=len(pieces),
                            upload_date=datetime.now(timezone.utc),
                            metadata_=handle.metadata,
                        )
                    )
                    await session.flush()
                    session.add_all(
                        BlobChunk(file_id=blob_id, n=n, data=piece)
                        for n, piece in enumerate(pieces)
                    )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to store blob: {e}") from e
        logger.info(
            "blob_stored",
            extra={"blob_id": blob_id, "length": len(data), "chunks": len(pieces)},
        )
        return blob_id

    async def _get_file(self, session: AsyncSession, blob_id: str) -> BlobFile:
        try:
            row = await session.get(BlobFile, blob_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up blob: {e}") from e
        if row is None:
            raise DocumentNotFoundError("File not found")
        return row

    async def stat(self, blob_id: str) -> BlobInfo:
        async with self._session_factory() as session:
            return _to_info(await self._get_file(session, blob_id))

    async def open_for_read(self, blob_id: str) -> SqlReadHandle:
        session = self._session_factory()
        try:
            row = await self._get_file(session, blob_id)
        except BaseException:
            await session.close()
            raise
        return SqlReadHandle(session, _to_info(row), row.chunk_count)

    async def list(self) -> List[BlobInfo]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(BlobFile).order_by(BlobFile.upload_date.desc())
                )
                return [_to_info(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list blobs: {e}") from e

    async def delete(self, blob_id: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._get_file(session, blob_id)
                    await session.execute(delete(BlobChunk).where(BlobChunk.file_id == blob_id))
                    await session.execute(delete(BlobFile).where(BlobFile.id == blob_id))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete blob: {e}") from e
        logger.info("blob_deleted", extra={"blob_id": blob_id})
