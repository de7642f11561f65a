# lead_service/adapters/repos/cursors.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Cursor


class CursorRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, *, organization_id: int, namespace: str) -> Cursor | None:
        q = (
            select(Cursor)
            .where(Cursor.organization_id == organization_id)
            .where(Cursor.namespace == namespace)
        )
        return (await self.session.execute(q)).scalars().first()

    async def put(self, *, organization_id: int, namespace: str, state: Any) -> Cursor:
        row = await self.get(organization_id=organization_id, namespace=namespace)
        if row is None:
            row = Cursor(organization_id=organization_id, namespace=namespace)
            self.session.add(row)
        row.state = state
        row.updated_at = datetime.utcnow()
        await self.session.flush()
        return row

    async def delete(self, *, organization_id: int, namespace: str) -> bool:
        res = await self.session.execute(
            delete(Cursor)
            .where(Cursor.organization_id == organization_id)
            .where(Cursor.namespace == namespace)
        )
        return bool(res.rowcount)
