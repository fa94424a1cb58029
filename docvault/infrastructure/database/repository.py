# docvault/infrastructure/database/repository.py

from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Type

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(session: AsyncSession, model: Type[Any]):
    """INSERT construct supporting ON CONFLICT for the session's dialect (PostgreSQL or SQLite)."""
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for dialect {name!r}")


async def insert_if_absent(
    session: AsyncSession,
    model: Type[Any],
    values: dict,
    index_elements: Iterable[str],
) -> bool:
    """
    Atomic append-if-absent: INSERT ... ON CONFLICT DO NOTHING.
    Returns True if a row was inserted. Caller commits.
    """
    stmt = dialect_insert(session, model).values(**values)
    stmt = stmt.on_conflict_do_nothing(index_elements=list(index_elements))
    result = await session.execute(stmt)
    return bool(result.rowcount)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
