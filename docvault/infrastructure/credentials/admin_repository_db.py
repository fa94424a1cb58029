"""DB-backed admin credential repository (admin_users table)."""

from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.application.exceptions import StoreError
from docvault.domain.models.admin import AdminCredential
from docvault.infrastructure.database.models import AdminUserRow
from docvault.infrastructure.database.repository import as_utc


def _to_credential(row: AdminUserRow) -> AdminCredential:
    return AdminCredential(
        email=row.email,
        password=row.password,
        verified=bool(row.verified),
        created_at=as_utc(row.created_at),
    )


class SqlAdminCredentialRepository:
    """Implements AdminCredentialRepository protocol. Email lookups are case-insensitive."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_email(self, email: str) -> Optional[AdminCredential]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AdminUserRow).where(func.lower(AdminUserRow.email) == email.lower())
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up admin: {e}") from e
        return _to_credential(row) if row else None

    async def update_password(self, email: str, password: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    update(AdminUserRow)
                    .where(func.lower(AdminUserRow.email) == email.lower())
                    .values(password=password)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update admin password: {e}") from e

    async def list_all(self) -> List[AdminCredential]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(AdminUserRow).order_by(AdminUserRow.id))
                return [_to_credential(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list admins: {e}") from e

    async def add(self, credential: AdminCredential) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    AdminUserRow(
                        email=credential.email,
                        password=credential.password,
                        verified=credential.verified,
                        created_at=credential.created_at,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to add admin: {e}") from e
