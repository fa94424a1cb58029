"""Audit API router: paged query and CSV export. Admin only."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response

from docvault.api.dependencies import get_audit_writer, require_admin
from docvault.domain.schemas.document import AuditLogItem, AuditLogPage
from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_models import AuditRecord
from docvault.security.credentials import Principal

router = APIRouter()


def _to_item(record: AuditRecord) -> AuditLogItem:
    return AuditLogItem(
        action=record.action.value,
        actor_email=record.actor_email,
        ip=record.ip,
        user_agent=record.user_agent,
        target_id=record.target_id,
        target_name=record.target_name,
        metadata=record.metadata,
        created_at=record.created_at,
    )


@router.get("", response_model=AuditLogPage)
async def query_audit_logs(
    principal: Annotated[Principal, Depends(require_admin)],
    audit: Annotated[AuditLogWriter, Depends(get_audit_writer)],
    action: Optional[str] = None,
    actor: Optional[str] = None,
    limit: Annotated[Optional[int], Query()] = None,
    skip: Annotated[Optional[int], Query()] = None,
):
    """Newest first. limit is clamped to [1, 200] (default 50); skip to >= 0."""
    records, total, limit, skip = await audit.query(action=action, actor=actor, limit=limit, skip=skip)
    return AuditLogPage(logs=[_to_item(r) for r in records], total=total, limit=limit, skip=skip)


@router.get("/export")
async def export_audit_logs(
    principal: Annotated[Principal, Depends(require_admin)],
    audit: Annotated[AuditLogWriter, Depends(get_audit_writer)],
    action: Optional[str] = None,
    actor: Optional[str] = None,
):
    body = await audit.export_csv(action=action, actor=actor)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="audit-logs.csv"'},
    )
