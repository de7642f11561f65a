# lead_service/entrypoints/api/routers/enrich.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ....adapters.sqlalchemy_repos import SqlAlchemyRepos
from ....schemas import EnrichmentOut, EnrichRequest
from ....service_layer.enrichment import get_enrichment
from ....service_layer.providers import Providers
from ..deps import Tenant, get_providers, get_repos, require_api_key, resolve_organization
from .leads import enrichment_out

router = APIRouter(tags=["enrich"], dependencies=[Depends(require_api_key)])


@router.post("/enrich", response_model=EnrichmentOut)
async def enrich(
    body: EnrichRequest,
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
    providers: Providers = Depends(get_providers),
) -> EnrichmentOut:
    row, cached = await get_enrichment(repos, providers.enricher, body.email)
    await repos.session.commit()
    if row is None:
        raise HTTPException(status_code=404, detail="Could not enrich email")
    return enrichment_out(row, cached=cached)
