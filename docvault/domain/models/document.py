"""Domain model for stored documents and their metadata. Pure business semantics — no ORM or infrastructure."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

UNKNOWN_SENDER = "Unknown"


def normalize_identity(identity: str) -> str:
    """Case-insensitive comparison key for viewer and sender identities."""
    return identity.strip().lower()


@dataclass(frozen=True)
class FormField:
    name: str
    value: Optional[str]


@dataclass(frozen=True)
class ViewerAck:
    """Record that an admin identity has retrieved a document. Append-only."""

    viewer_identity: str
    acknowledged_at: datetime

    @property
    def key(self) -> str:
        return normalize_identity(self.viewer_identity)


@dataclass
class DocumentMetadata:
    """
    Ledger row keyed 1:1 with a stored document. Created lazily.
    viewer_acks holds at most one entry per normalized viewer identity.
    """

    document_id: str
    filename: str
    upload_date: Optional[datetime]
    sender: Optional[str] = None
    uploaded_by: Optional[str] = None
    fields: List[FormField] = field(default_factory=list)
    viewer_acks: List[ViewerAck] = field(default_factory=list)

    def ack_for(self, viewer_identity: str) -> Optional[ViewerAck]:
        key = normalize_identity(viewer_identity)
        for ack in self.viewer_acks:
            if ack.key == key:
                return ack
        return None


@dataclass(frozen=True)
class DownloadedDocument:
    """Decrypted payload handed back to the caller."""

    document_id: str
    filename: str
    content: bytes


@dataclass(frozen=True)
class DocumentListing:
    """One row of the admin document list: blob listing merged with ledger state."""

    id: str
    filename: str
    upload_date: datetime
    sender: str
    acknowledged: bool
    acknowledged_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None
