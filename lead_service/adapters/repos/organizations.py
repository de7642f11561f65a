# lead_service/adapters/repos/organizations.py
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import Organization
from ..sql import insert_if_absent


class OrganizationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, *, app_id: str, external_id: str) -> Organization | None:
        q = (
            select(Organization)
            .where(Organization.app_id == app_id)
            .where(Organization.external_id == external_id)
        )
        return (await self.session.execute(q)).scalars().first()

    async def ensure(self, *, app_id: str, external_id: str) -> Organization:
        """
        Find-or-create. A concurrent creator wins the insert; we re-read its row.
        """
        org = await self.get(app_id=app_id, external_id=external_id)
        if org is not None:
            return org

        await insert_if_absent(
            self.session,
            Organization,
            {"app_id": app_id, "external_id": external_id},
            conflict_on=("app_id", "external_id"),
        )
        org = await self.get(app_id=app_id, external_id=external_id)
        if org is None:
            raise RuntimeError(f"failed to resolve organization app_id={app_id!r} external_id={external_id!r}")
        return org

    async def ids_for_app(self, app_id: str) -> list[int]:
        q = select(Organization.id).where(Organization.app_id == app_id)
        return [int(x) for x in (await self.session.execute(q)).scalars().all()]
