"""DB-backed audit repository. Persists audit records to the audit_logs table; insert only."""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.application.exceptions import StoreError
from docvault.governance.audit_models import AuditAction, AuditRecord
from docvault.infrastructure.database.models import AuditLogRow
from docvault.infrastructure.database.repository import as_utc


def _to_record(row: AuditLogRow) -> AuditRecord:
    return AuditRecord(
        action=AuditAction(row.action),
        actor_email=row.actor_email,
        ip=row.ip,
        user_agent=row.user_agent,
        target_id=row.target_id,
        target_name=row.target_name,
        metadata=row.metadata_,
        created_at=as_utc(row.created_at),
    )


class SqlAuditRepository:
    """Implements AuditRepository protocol. No update or delete paths."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, record: AuditRecord) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    AuditLogRow(
                        action=record.action.value,
                        actor_email=record.actor_email,
                        ip=record.ip,
                        user_agent=record.user_agent,
                        target_id=record.target_id,
                        target_name=record.target_name,
                        metadata_=record.metadata,
                        created_at=record.created_at,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write audit record: {e}") from e

    async def query(
        self,
        action: Optional[str],
        actor: Optional[str],
        limit: int,
        skip: int,
    ) -> Tuple[List[AuditRecord], int]:
        conditions = []
        if action is not None:
            conditions.append(AuditLogRow.action == action)
        if actor is not None:
            conditions.append(func.lower(AuditLogRow.actor_email) == actor.lower())
        try:
            async with self._session_factory() as session:
                total = await session.scalar(
                    select(func.count()).select_from(AuditLogRow).where(*conditions)
                )
                result = await session.execute(
                    select(AuditLogRow)
                    .where(*conditions)
                    .order_by(AuditLogRow.created_at.desc(), AuditLogRow.id.desc())
                    .offset(skip)
                    .limit(limit)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query audit records: {e}") from e
        return [_to_record(row) for row in rows], int(total or 0)
