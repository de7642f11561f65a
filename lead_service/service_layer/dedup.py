# lead_service/service_layer/dedup.py
from __future__ import annotations

import logging
from typing import Any

from ..adapters.clients.base import DeliveryStatusProvider
from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..domain.policies import is_delivered

log = logging.getLogger(__name__)


async def is_served(repos: SqlAlchemyRepos, *, organization_id: int, scope_key: str, email: str) -> bool:
    """
    Fast pre-check only. The authoritative gate is mark_served().
    """
    if not email:
        return False
    return await repos.served.exists(organization_id=organization_id, scope_key=scope_key, email=email)


async def mark_served(
    repos: SqlAlchemyRepos,
    *,
    organization_id: int,
    scope_key: str,
    namespace: str,
    brand_id: str | None,
    email: str,
    external_person_id: str | None = None,
    payload: Any = None,
    parent_run_id: str | None = None,
    run_id: str | None = None,
    actor_org_id: str | None = None,
    actor_user_id: str | None = None,
) -> bool:
    """
    Record the hand-out. False means another caller already served this
    email in this scope; the current caller must not return the lead.
    """
    return await repos.served.insert_if_absent(
        organization_id=organization_id,
        scope_key=scope_key,
        namespace=namespace,
        campaign_id=namespace,
        brand_id=brand_id,
        email=email,
        external_person_id=external_person_id,
        payload=payload,
        parent_run_id=parent_run_id,
        run_id=run_id,
        actor_org_id=actor_org_id,
        actor_user_id=actor_user_id,
    )


async def check_delivered(
    delivery: DeliveryStatusProvider | None,
    *,
    brand_id: str | None,
    campaign_id: str | None,
    items: list[dict[str, Any]],
) -> dict[str, bool]:
    """
    email -> contacted anywhere. An unreachable gateway reads as "not contacted".
    """
    out = {i["email"]: False for i in items}
    if delivery is None or not items:
        return out

    results = await delivery.check(brand_id=brand_id, campaign_id=campaign_id, items=items)
    if results is None:
        return out

    for r in results:
        email = r.get("email")
        if email in out:
            out[email] = is_delivered(r)
    return out
