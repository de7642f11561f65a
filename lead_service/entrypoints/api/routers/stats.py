# lead_service/entrypoints/api/routers/stats.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from ....adapters.sqlalchemy_repos import SqlAlchemyRepos
from ....schemas import StatsOut, StatsRequest
from ....service_layer.providers import Providers
from ....service_layer.stats import compute_stats
from ..deps import Tenant, get_providers, get_repos, require_api_key, resolve_organization

router = APIRouter(tags=["stats"], dependencies=[Depends(require_api_key)])


@router.get("/stats", response_model=StatsOut)
async def tenant_stats(
    brand_id: str | None = Query(default=None, alias="brandId"),
    campaign_id: str | None = Query(default=None, alias="campaignId"),
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
    providers: Providers = Depends(get_providers),
) -> dict[str, Any]:
    out = await compute_stats(
        repos,
        providers.stats,
        organization_ids=[tenant.organization_id],
        brand_id=brand_id,
        campaign_id=campaign_id,
    )
    await repos.session.commit()
    return out


@router.post("/stats", response_model=StatsOut)
async def aggregate_stats(
    body: StatsRequest,
    repos: SqlAlchemyRepos = Depends(get_repos),
    providers: Providers = Depends(get_providers),
) -> dict[str, Any]:
    """
    Cross-tenant counters for dashboards: filter by runs, app, brand, campaign or actor org.
    """
    organization_ids = await repos.organizations.ids_for_app(body.app_id) if body.app_id else None

    provider_filters = {
        k: v
        for k, v in {
            "runIds": body.run_ids,
            "appId": body.app_id,
            "brandId": body.brand_id,
            "campaignId": body.campaign_id,
        }.items()
        if v
    }
    return await compute_stats(
        repos,
        providers.stats,
        organization_ids=organization_ids,
        brand_id=body.brand_id,
        campaign_id=body.campaign_id,
        actor_org_id=body.org_id,
        run_ids=body.run_ids,
        provider_filters=provider_filters,
    )
