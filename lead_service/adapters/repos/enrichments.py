# lead_service/adapters/repos/enrichments.py
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.types import PersonResult
from ...models import Enrichment
from ..sql import insert_if_absent


def _str_or_none(v: Any) -> str | None:
    return None if v is None else str(v)


def _fields_from_person(person: PersonResult | None) -> dict[str, Any]:
    raw = person.raw if person else {}
    return {
        "first_name": raw.get("firstName"),
        "last_name": raw.get("lastName"),
        "title": raw.get("title"),
        "linkedin_url": raw.get("linkedinUrl"),
        "organization_name": raw.get("organizationName"),
        "organization_domain": raw.get("organizationDomain"),
        "organization_industry": raw.get("organizationIndustry"),
        "organization_size": _str_or_none(raw.get("organizationSize")),
    }


class EnrichmentRepository:
    """
    Read-through cache rows are written once and never updated; a second
    writer for the same person or email is a silent no-op.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def by_person_id(self, external_person_id: str) -> Enrichment | None:
        q = select(Enrichment).where(Enrichment.external_person_id == external_person_id)
        return (await self.session.execute(q)).scalars().first()

    async def by_email(self, email: str) -> Enrichment | None:
        q = select(Enrichment).where(Enrichment.email == email)
        return (await self.session.execute(q)).scalars().first()

    async def by_emails(self, emails: list[str]) -> list[Enrichment]:
        if not emails:
            return []
        q = select(Enrichment).where(Enrichment.email.in_(emails))
        return list((await self.session.execute(q)).scalars().all())

    async def store(
        self,
        *,
        external_person_id: str | None,
        email: str | None,
        person: PersonResult | None,
    ) -> bool:
        values = {
            "external_person_id": external_person_id,
            "email": email or None,
            "raw_response": person.raw if person else None,
            **_fields_from_person(person),
        }
        return await insert_if_absent(self.session, Enrichment, values)

    async def store_tombstone(self, external_person_id: str) -> bool:
        return await self.store(external_person_id=external_person_id, email=None, person=None)
