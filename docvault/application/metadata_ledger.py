"""Metadata ledger protocol. Application layer depends on this; infrastructure implements it."""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from docvault.domain.models.document import UNKNOWN_SENDER, DocumentMetadata, FormField


@dataclass(frozen=True)
class LedgerSummary:
    """Per-document view for one viewer: resolved sender and acknowledgment state."""

    sender: str
    acknowledged: bool
    acknowledged_at: Optional[datetime] = None


class MetadataLedger(Protocol):
    """
    One metadata row per document, created lazily. ViewerAck appends must be an
    atomic append-if-absent keyed on the normalized viewer identity.
    """

    async def record_upload(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        fields: List[FormField],
        uploaded_by: Optional[str] = None,
    ) -> None:
        ...

    async def record_access(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        viewer_identity: str,
    ) -> None:
        ...

    async def list_with_sender_and_ack(
        self,
        ids: Sequence[str],
        viewer_identity: Optional[str],
        upload_senders: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Dict[str, LedgerSummary]:
        ...

    async def delete_for_document(self, document_id: str) -> None:
        ...

    async def get(self, document_id: str) -> Optional[DocumentMetadata]:
        ...


def resolve_sender(ledger_sender: Optional[str], upload_sender: Optional[str]) -> str:
    """Ledger sender first, then the sender stored with the upload, then UNKNOWN_SENDER."""
    return ledger_sender or upload_sender or UNKNOWN_SENDER
