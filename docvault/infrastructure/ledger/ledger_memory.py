"""In-memory metadata ledger. For tests or single-node development."""

import copy
import threading
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from docvault.application.metadata_ledger import LedgerSummary, resolve_sender
from docvault.domain.models.document import (
    DocumentMetadata,
    FormField,
    ViewerAck,
    normalize_identity,
)


class InMemoryMetadataLedger:
    """
    Implements MetadataLedger protocol. Every mutation happens under one lock,
    so the ViewerAck check-and-append is a single atomic step.
    """

    def __init__(self) -> None:
        self._rows: dict[str, DocumentMetadata] = {}
        self._lock = threading.Lock()

    async def record_upload(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        fields: List[FormField],
        uploaded_by: Optional[str] = None,
    ) -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            row = self._rows.get(document_id)
            if row is None:
                self._rows[document_id] = DocumentMetadata(
                    document_id=document_id,
                    filename=filename,
                    upload_date=now,
                    sender=sender,
                    uploaded_by=uploaded_by,
                    fields=list(fields),
                )
                return
            row.fields = list(fields)
            row.uploaded_by = uploaded_by
            if row.sender is None:
                row.sender = sender

    async def record_access(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        viewer_identity: str,
    ) -> None:
        ack = ViewerAck(viewer_identity=viewer_identity, acknowledged_at=datetime.now(timezone.utc))
        with self._lock:
            row = self._rows.get(document_id)
            if row is None:
                self._rows[document_id] = DocumentMetadata(
                    document_id=document_id,
                    filename=filename,
                    upload_date=ack.acknowledged_at,
                    sender=sender,
                    viewer_acks=[ack],
                )
                return
            if row.ack_for(viewer_identity) is None:
                row.viewer_acks.append(ack)

    async def list_with_sender_and_ack(
        self,
        ids: Sequence[str],
        viewer_identity: Optional[str],
        upload_senders: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Dict[str, LedgerSummary]:
        upload_senders = upload_senders or {}
        summaries: Dict[str, LedgerSummary] = {}
        with self._lock:
            for document_id in ids:
                row = self._rows.get(document_id)
                ack = row.ack_for(viewer_identity) if row and viewer_identity else None
                summaries[document_id] = LedgerSummary(
                    sender=resolve_sender(row.sender if row else None, upload_senders.get(document_id)),
                    acknowledged=ack is not None,
                    acknowledged_at=ack.acknowledged_at if ack else None,
                )
        return summaries

    async def delete_for_document(self, document_id: str) -> None:
        with self._lock:
            self._rows.pop(document_id, None)

    async def get(self, document_id: str) -> Optional[DocumentMetadata]:
        with self._lock:
            row = self._rows.get(document_id)
            return copy.deepcopy(row) if row else None

    def viewer_keys(self, document_id: str) -> List[str]:
        with self._lock:
            row = self._rows.get(document_id)
            return [normalize_identity(a.viewer_identity) for a in row.viewer_acks] if row else []
