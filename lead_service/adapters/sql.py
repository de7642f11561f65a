# lead_service/adapters/sql.py
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase


def _dialect_insert(session: AsyncSession, model: type[DeclarativeBase]):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"insert_if_absent not supported on dialect {name!r}")


async def insert_if_absent(
    session: AsyncSession,
    model: type[DeclarativeBase],
    values: dict[str, Any],
    *,
    conflict_on: Sequence[str] | None = None,
) -> bool:
    """
    Single-statement INSERT ... ON CONFLICT DO NOTHING.

    Returns True if this call inserted the row, False if a unique constraint
    already held a matching row (someone else won).
    """
    stmt = _dialect_insert(session, model).values(**values)
    if conflict_on:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_on))
    else:
        stmt = stmt.on_conflict_do_nothing()
    stmt = stmt.returning(model.id)  # type: ignore[attr-defined]

    res = await session.execute(stmt)
    return res.scalar_one_or_none() is not None
