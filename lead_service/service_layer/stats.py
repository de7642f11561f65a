# lead_service/service_layer/stats.py
from __future__ import annotations

from typing import Any

from ..adapters.clients.base import ProviderStats
from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..models import BufferStatus

EMPTY_PROVIDER_STATS = {
    "enrichedLeadsCount": 0,
    "searchCount": 0,
    "fetchedPeopleCount": 0,
    "totalMatchingPeople": 0,
}


async def compute_stats(
    repos: SqlAlchemyRepos,
    provider: ProviderStats | None,
    *,
    organization_ids: list[int] | None = None,
    brand_id: str | None = None,
    campaign_id: str | None = None,
    actor_org_id: str | None = None,
    run_ids: list[str] | None = None,
    provider_filters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    {served, buffered, skipped, provider}. organization_ids=[] matches nothing.
    """
    if organization_ids is not None and not organization_ids:
        return {"served": 0, "buffered": 0, "skipped": 0, "provider": dict(EMPTY_PROVIDER_STATS)}

    filters = {
        "organization_ids": organization_ids,
        "brand_id": brand_id,
        "campaign_id": campaign_id,
        "actor_org_id": actor_org_id,
        "run_ids": run_ids,
    }
    served = await repos.served.count(**filters)
    by_status = await repos.buffer.count_by_status(**filters)

    provider_stats = dict(EMPTY_PROVIDER_STATS)
    if provider is not None:
        pf = provider_filters
        if pf is None:
            pf = {k: v for k, v in {"brandId": brand_id, "campaignId": campaign_id}.items() if v}
        provider_stats = await provider.stats(pf)

    return {
        "served": served,
        "buffered": by_status.get(BufferStatus.buffered.value, 0),
        "skipped": by_status.get(BufferStatus.skipped.value, 0),
        "provider": provider_stats,
    }
