# lead_service/adapters/repos/buffer.py
from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ...models import BufferedLead, BufferStatus


class BufferRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(
        self,
        *,
        organization_id: int,
        namespace: str,
        brand_id: str | None,
        email: str,
        external_person_id: str | None,
        payload: Any,
        push_run_id: str | None = None,
        actor_org_id: str | None = None,
        actor_user_id: str | None = None,
    ) -> BufferedLead:
        row = BufferedLead(
            organization_id=organization_id,
            namespace=namespace,
            campaign_id=namespace,
            brand_id=brand_id,
            email=email,
            external_person_id=external_person_id,
            payload=payload,
            status=BufferStatus.buffered,
            push_run_id=push_run_id,
            actor_org_id=actor_org_id,
            actor_user_id=actor_user_id,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def next_candidate(self, *, organization_id: int, namespace: str) -> BufferedLead | None:
        """
        Oldest buffered row, preferring rows that already carry an email
        (no enrichment call needed).
        """
        has_email_first = case((BufferedLead.email != "", 0), else_=1)
        q = (
            select(BufferedLead)
            .where(BufferedLead.organization_id == organization_id)
            .where(BufferedLead.namespace == namespace)
            .where(BufferedLead.status == BufferStatus.buffered)
            .order_by(has_email_first, BufferedLead.id.asc())
            .limit(1)
        )
        return (await self.session.execute(q)).scalars().first()

    async def has_person(self, *, organization_id: int, namespace: str, external_person_id: str) -> bool:
        # any status: a served or skipped person must not come back on a later page
        q = (
            select(BufferedLead.id)
            .where(BufferedLead.organization_id == organization_id)
            .where(BufferedLead.namespace == namespace)
            .where(BufferedLead.external_person_id == external_person_id)
            .limit(1)
        )
        return (await self.session.execute(q)).first() is not None

    async def set_status(self, row: BufferedLead, status: BufferStatus) -> None:
        # conditional on still being buffered so a retried step is a no-op
        await self.session.execute(
            update(BufferedLead)
            .where(BufferedLead.id == row.id)
            .where(BufferedLead.status == BufferStatus.buffered)
            .values(status=status)
        )
        set_committed_value(row, "status", status)

    async def fill_email(self, row: BufferedLead, *, email: str, payload: Any) -> None:
        row.email = email
        row.payload = payload
        await self.session.flush()

    async def count_by_status(self, **filters: Any) -> dict[str, int]:
        q = select(BufferedLead.status, func.count()).group_by(BufferedLead.status)
        q = _apply_filters(q, filters)
        rows = (await self.session.execute(q)).all()
        return {status.value: int(n) for status, n in rows}


def _apply_filters(q, filters: dict[str, Any]):
    if filters.get("organization_ids") is not None:
        q = q.where(BufferedLead.organization_id.in_(filters["organization_ids"]))
    if filters.get("brand_id"):
        q = q.where(BufferedLead.brand_id == filters["brand_id"])
    if filters.get("campaign_id"):
        q = q.where(BufferedLead.campaign_id == filters["campaign_id"])
    if filters.get("actor_org_id"):
        q = q.where(BufferedLead.actor_org_id == filters["actor_org_id"])
    if filters.get("run_ids"):
        q = q.where(BufferedLead.push_run_id.in_(filters["run_ids"]))
    return q
