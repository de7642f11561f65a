# lead_service/service_layer/enrichment.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..adapters.clients.base import EnrichmentProvider
from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..domain.policies import normalize_email
from ..models import Enrichment

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonEmail:
    """
    email=None with failed=False is definitive (tombstone).
    failed=True means the provider could not be asked; nothing was cached.
    """
    email: str | None
    data: dict[str, Any] | None = None
    cached: bool = False
    failed: bool = False


async def resolve_person_email(
    repos: SqlAlchemyRepos,
    enricher: EnrichmentProvider | None,
    external_person_id: str,
    *,
    context: dict[str, Any] | None = None,
) -> PersonEmail:
    """
    Read-through: the provider is asked at most once per person.
    """
    row = await repos.enrichments.by_person_id(external_person_id)
    if row is not None:
        return PersonEmail(email=row.email, data=row.raw_response, cached=True)

    if enricher is None:
        return PersonEmail(email=None, failed=True)

    res = await enricher.enrich(person_id=external_person_id, context=context)
    if res is None:
        return PersonEmail(email=None, failed=True)

    email = normalize_email(res.person.email if res.person else None)
    if not email:
        await repos.enrichments.store_tombstone(external_person_id)
        log.info("no email for person=%s, cached tombstone", external_person_id)
        return PersonEmail(email=None)

    stored = await repos.enrichments.store(external_person_id=external_person_id, email=email, person=res.person)
    if not stored and await repos.enrichments.by_person_id(external_person_id) is None:
        # email already cached under another person id; this person stays uncached
        log.warning(
            "enrichment for person=%s not cached: email %s belongs to another person id",
            external_person_id,
            email,
        )
    return PersonEmail(email=email, data=res.person.raw if res.person else None)


async def get_enrichment(
    repos: SqlAlchemyRepos,
    enricher: EnrichmentProvider | None,
    email: str,
) -> tuple[Enrichment | None, bool]:
    """
    Enrichment by email for the /enrich endpoint. Returns (row, cached).
    """
    email = normalize_email(email)
    row = await repos.enrichments.by_email(email)
    if row is not None:
        return row, True

    if enricher is None:
        return None, False

    res = await enricher.enrich(email=email)
    if res is None or res.person is None:
        return None, False

    inserted = await repos.enrichments.store(
        external_person_id=res.person.id,
        email=email,
        person=res.person,
    )
    row = await repos.enrichments.by_email(email)
    if row is None and res.person.id:
        # person already cached under another email (or as a tombstone)
        row = await repos.enrichments.by_person_id(res.person.id)
    return row, not inserted
