"""Immutable audit logging, query and CSV export. No FastAPI."""

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from docvault.governance.audit_models import AuditAction, AuditRecord, RequestOrigin
from docvault.governance.audit_repository import AuditRepository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
EXPORT_MAX_ROWS = 5000
CSV_HEADER = ["Timestamp", "Action", "Actor Email", "IP", "Target ID", "Target Name"]


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, limit))


def clamp_skip(skip: Optional[int]) -> int:
    if skip is None:
        return 0
    return max(0, skip)


def _clean_filter(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


class AuditLogWriter:
    """
    Writes immutable audit records via repository; reads them back for review.
    Callers on a request path submit record() through the DetachedTaskRunner.
    """

    def __init__(self, repository: AuditRepository) -> None:
        self._repository = repository

    async def record(
        self,
        *,
        action: AuditAction,
        origin: RequestOrigin,
        target_id: Optional[str] = None,
        target_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        """Write immutable audit record. Timestamp is UTC."""
        record = AuditRecord(
            action=action,
            actor_email=origin.actor_email,
            ip=origin.ip,
            user_agent=origin.user_agent,
            target_id=target_id,
            target_name=target_name,
            metadata=metadata,
            created_at=datetime.now(timezone.utc),
        )
        await self._repository.save(record)
        logger.info("audit_recorded", extra={"audit": record.to_dict()})
        return record

    async def query(
        self,
        action: Optional[str] = None,
        actor: Optional[str] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> Tuple[List[AuditRecord], int, int, int]:
        """Returns (records, total, effective limit, effective skip). limit in [1, 200], skip >= 0."""
        limit = clamp_limit(limit)
        skip = clamp_skip(skip)
        records, total = await self._repository.query(
            _clean_filter(action), _clean_filter(actor), limit, skip
        )
        return records, total, limit, skip

    async def export_csv(self, action: Optional[str] = None, actor: Optional[str] = None) -> str:
        """CSV of at most EXPORT_MAX_ROWS records, newest first. Every field quoted; embedded quotes doubled."""
        records, _ = await self._repository.query(
            _clean_filter(action), _clean_filter(actor), EXPORT_MAX_ROWS, 0
        )
        return render_csv(records)


def render_csv(records: List[AuditRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in records:
        writer.writerow(
            [
                r.created_at.isoformat(),
                r.action.value,
                r.actor_email or "",
                r.ip or "",
                r.target_id or "",
                r.target_name or "",
            ]
        )
    return buffer.getvalue()
