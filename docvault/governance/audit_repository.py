"""Audit repository protocol. Governance layer depends on this; infrastructure implements it."""

import threading
from typing import List, Optional, Protocol, Tuple

from docvault.governance.audit_models import AuditRecord


class AuditRepository(Protocol):
    """Protocol for persisting immutable audit records. Write-once: no update or delete."""

    async def save(self, record: AuditRecord) -> None:
        """Persist an immutable audit record. Must not allow mutation."""
        ...

    async def query(
        self,
        action: Optional[str],
        actor: Optional[str],
        limit: int,
        skip: int,
    ) -> Tuple[List[AuditRecord], int]:
        """Newest first. Returns (page, total matching)."""
        ...


class InMemoryAuditRepository:
    """Append-only list. For tests or single-node."""

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []
        self._lock = threading.Lock()

    async def save(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    async def query(
        self,
        action: Optional[str],
        actor: Optional[str],
        limit: int,
        skip: int,
    ) -> Tuple[List[AuditRecord], int]:
        with self._lock:
            records = list(self._records)
        matching = [
            r
            for r in records
            if (action is None or r.action.value == action)
            and (actor is None or (r.actor_email or "").lower() == actor.lower())
        ]
        matching.sort(key=lambda r: r.created_at, reverse=True)
        return matching[skip: skip + limit], len(matching)
