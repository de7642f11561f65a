# lead_service/adapters/repos/served.py
from __future__ import annotations

from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import ServedLead
from ..sql import insert_if_absent


class ServedLeadRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, *, organization_id: int, scope_key: str, email: str) -> bool:
        q = (
            select(ServedLead.id)
            .where(ServedLead.organization_id == organization_id)
            .where(ServedLead.scope_key == scope_key)
            .where(ServedLead.email == email)
            .limit(1)
        )
        return (await self.session.execute(q)).first() is not None

    async def insert_if_absent(self, **values: Any) -> bool:
        return await insert_if_absent(
            self.session,
            ServedLead,
            values,
            conflict_on=("organization_id", "scope_key", "email"),
        )

    async def list_for_org(
        self,
        *,
        organization_id: int,
        brand_id: str | None = None,
        campaign_id: str | None = None,
        actor_org_id: str | None = None,
        actor_user_id: str | None = None,
    ) -> list[ServedLead]:
        q = select(ServedLead).where(ServedLead.organization_id == organization_id)
        if brand_id:
            q = q.where(ServedLead.brand_id == brand_id)
        if campaign_id:
            q = q.where(ServedLead.campaign_id == campaign_id)
        if actor_org_id:
            q = q.where(ServedLead.actor_org_id == actor_org_id)
        if actor_user_id:
            q = q.where(ServedLead.actor_user_id == actor_user_id)
        q = q.order_by(ServedLead.served_at.asc(), ServedLead.id.asc())
        return list((await self.session.execute(q)).scalars().all())

    async def count(self, **filters: Any) -> int:
        q = select(func.count()).select_from(ServedLead)
        if filters.get("organization_ids") is not None:
            q = q.where(ServedLead.organization_id.in_(filters["organization_ids"]))
        if filters.get("brand_id"):
            q = q.where(ServedLead.brand_id == filters["brand_id"])
        if filters.get("campaign_id"):
            q = q.where(ServedLead.campaign_id == filters["campaign_id"])
        if filters.get("actor_org_id"):
            q = q.where(ServedLead.actor_org_id == filters["actor_org_id"])
        if filters.get("run_ids"):
            run_ids = filters["run_ids"]
            q = q.where(or_(ServedLead.parent_run_id.in_(run_ids), ServedLead.run_id.in_(run_ids)))
        return int((await self.session.execute(q)).scalar_one())
