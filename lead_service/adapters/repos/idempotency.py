# lead_service/adapters/repos/idempotency.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import IdempotencyRecord
from ..sql import insert_if_absent


class IdempotencyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, idempotency_key: str) -> IdempotencyRecord | None:
        q = select(IdempotencyRecord).where(IdempotencyRecord.idempotency_key == idempotency_key)
        return (await self.session.execute(q)).scalars().first()

    async def save(self, *, idempotency_key: str, organization_id: int, response_json: str) -> bool:
        return await insert_if_absent(
            self.session,
            IdempotencyRecord,
            {
                "idempotency_key": idempotency_key,
                "organization_id": organization_id,
                "response_json": response_json,
            },
            conflict_on=("idempotency_key",),
        )

    async def prune_older_than(self, cutoff: datetime) -> int:
        res = await self.session.execute(
            delete(IdempotencyRecord).where(IdempotencyRecord.created_at < cutoff)
        )
        return int(res.rowcount or 0)
