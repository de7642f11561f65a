# lead_service/service_layer/buffer.py
from __future__ import annotations

import logging
from typing import Any, Iterable

from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..config import settings
from ..domain.policies import normalize_email, resolve_scope_key
from ..domain.types import PushResult
from .dedup import is_served

log = logging.getLogger(__name__)


async def push_leads(
    repos: SqlAlchemyRepos,
    *,
    organization_id: int,
    campaign_id: str,
    brand_id: str | None,
    leads: Iterable[dict[str, Any]],
    push_run_id: str | None = None,
    actor_org_id: str | None = None,
    actor_user_id: str | None = None,
) -> PushResult:
    """
    Stage caller-supplied leads. Not atomic across the batch: each lead is
    checked and inserted on its own, and the returned counts are the truth.

    Each lead: {"email": str, "externalId": str | None, "data": Any}
    """
    scope_key = resolve_scope_key(settings.DEDUP_SCOPE, namespace=campaign_id, brand_id=brand_id)

    buffered = 0
    skipped = 0
    for lead in leads:
        email = normalize_email(lead.get("email"))
        if email and await is_served(repos, organization_id=organization_id, scope_key=scope_key, email=email):
            skipped += 1
            continue

        await repos.buffer.add(
            organization_id=organization_id,
            namespace=campaign_id,
            brand_id=brand_id,
            email=email,
            external_person_id=lead.get("externalId"),
            payload=lead.get("data"),
            push_run_id=push_run_id,
            actor_org_id=actor_org_id,
            actor_user_id=actor_user_id,
        )
        buffered += 1

    log.info("push org=%s ns=%s buffered=%s skipped=%s", organization_id, campaign_id, buffered, skipped)
    return PushResult(buffered=buffered, skipped_already_served=skipped)
