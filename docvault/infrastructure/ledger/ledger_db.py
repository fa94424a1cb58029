"""DB-backed metadata ledger. ViewerAck append is INSERT ... ON CONFLICT DO NOTHING on (document_id, viewer_key)."""

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.application.exceptions import StoreError
from docvault.application.metadata_ledger import LedgerSummary, resolve_sender
from docvault.domain.models.document import (
    DocumentMetadata,
    FormField,
    ViewerAck,
    normalize_identity,
)
from docvault.infrastructure.database.models import DocumentMetadataRow, ViewerAckRow
from docvault.infrastructure.database.repository import as_utc, dialect_insert, insert_if_absent


def _fields_to_json(fields: List[FormField]) -> list:
    return [{"name": f.name, "value": f.value} for f in fields]


def _fields_from_json(raw: Optional[list]) -> List[FormField]:
    return [FormField(name=f.get("name", ""), value=f.get("value")) for f in raw or []]


class SqlMetadataLedger:
    """Implements MetadataLedger protocol. No read-modify-write: conflicts are resolved by the database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record_upload(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        fields: List[FormField],
        uploaded_by: Optional[str] = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                stmt = dialect_insert(session, DocumentMetadataRow).values(
                    document_id=document_id,
                    filename=filename,
                    upload_date=datetime.now(timezone.utc),
                    sender=sender,
                    uploaded_by=uploaded_by,
                    fields=_fields_to_json(fields),
                )
                # A download may have created the row first; keep its sender if set.
                stmt = stmt.on_conflict_do_update(
                    index_elements=["document_id"],
                    set_={
                        "fields": stmt.excluded.fields,
                        "uploaded_by": stmt.excluded.uploaded_by,
                        "sender": func.coalesce(DocumentMetadataRow.sender, stmt.excluded.sender),
                    },
                )
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to record upload metadata: {e}") from e

    async def record_access(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        viewer_identity: str,
    ) -> None:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                await insert_if_absent(
                    session,
                    DocumentMetadataRow,
                    {
                        "document_id": document_id,
                        "filename": filename,
                        "upload_date": now,
                        "sender": sender,
                        "fields": [],
                    },
                    index_elements=["document_id"],
                )
                await insert_if_absent(
                    session,
                    ViewerAckRow,
                    {
                        "document_id": document_id,
                        "viewer_key": normalize_identity(viewer_identity),
                        "viewer_identity": viewer_identity,
                        "acknowledged_at": now,
                    },
                    index_elements=["document_id", "viewer_key"],
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to record access: {e}") from e

    async def list_with_sender_and_ack(
        self,
        ids: Sequence[str],
        viewer_identity: Optional[str],
        upload_senders: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Dict[str, LedgerSummary]:
        upload_senders = upload_senders or {}
        ids = list(ids)
        if not ids:
            return {}
        try:
            async with self._session_factory() as session:
                rows = await session.execute(
                    select(DocumentMetadataRow.document_id, DocumentMetadataRow.sender).where(
                        DocumentMetadataRow.document_id.in_(ids)
                    )
                )
                senders = {document_id: sender for document_id, sender in rows.all()}
                acks: Dict[str, datetime] = {}
                if viewer_identity:
                    ack_rows = await session.execute(
                        select(ViewerAckRow.document_id, ViewerAckRow.acknowledged_at).where(
                            ViewerAckRow.document_id.in_(ids),
                            ViewerAckRow.viewer_key == normalize_identity(viewer_identity),
                        )
                    )
                    acks = {document_id: as_utc(at) for document_id, at in ack_rows.all()}
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read metadata: {e}") from e

        return {
            document_id: LedgerSummary(
                sender=resolve_sender(senders.get(document_id), upload_senders.get(document_id)),
                acknowledged=document_id in acks,
                acknowledged_at=acks.get(document_id),
            )
            for document_id in ids
        }

    async def delete_for_document(self, document_id: str) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(ViewerAckRow).where(ViewerAckRow.document_id == document_id)
                    )
                    await session.execute(
                        delete(DocumentMetadataRow).where(DocumentMetadataRow.document_id == document_id)
                    )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete metadata: {e}") from e

    async def get(self, document_id: str) -> Optional[DocumentMetadata]:
        try:
            async with self._session_factory() as session:
                row = await session.get(DocumentMetadataRow, document_id)
                if row is None:
                    return None
                ack_rows = await session.execute(
                    select(ViewerAckRow)
                    .where(ViewerAckRow.document_id == document_id)
                    .order_by(ViewerAckRow.id)
                )
                acks = [
                    ViewerAck(viewer_identity=a.viewer_identity, acknowledged_at=as_utc(a.acknowledged_at))
                    for a in ack_rows.scalars().all()
                ]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read metadata: {e}") from e
        return DocumentMetadata(
            document_id=row.document_id,
            filename=row.filename,
            upload_date=as_utc(row.upload_date),
            sender=row.sender,
            uploaded_by=row.uploaded_by,
            fields=_fields_from_json(row.fields),
            viewer_acks=acks,
        )
