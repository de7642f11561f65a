# lead_service/entrypoints/api/routers/buffer.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Response

from ....adapters.sqlalchemy_repos import SqlAlchemyRepos
from ....config import settings
from ....domain.policies import resolve_scope_key
from ....schemas import NextRequest, PushRequest, PushResponse
from ....service_layer.buffer import push_leads
from ....service_layer.idempotency import run_idempotent
from ....service_layer.providers import Providers
from ....service_layer.pull import pull_next
from ....service_layer.runs import finish_run, start_child_run
from ..deps import Tenant, get_providers, get_repos, require_api_key, resolve_organization

log = logging.getLogger(__name__)

router = APIRouter(tags=["buffer"], dependencies=[Depends(require_api_key)])


def _check_scope(campaign_id: str, brand_id: str | None) -> None:
    try:
        resolve_scope_key(settings.DEDUP_SCOPE, namespace=campaign_id, brand_id=brand_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/buffer/push", response_model=PushResponse)
async def push(
    body: PushRequest,
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
) -> dict[str, int]:
    _check_scope(body.campaign_id, body.brand_id)

    run_id = await start_child_run(
        parent_run_id=body.parent_run_id,
        task_name="buffer-push",
        app_id=tenant.app_id,
        org_id=body.org_id or tenant.external_org_id,
        user_id=body.user_id,
        brand_id=body.brand_id,
        campaign_id=body.campaign_id,
    )
    try:
        result = await push_leads(
            repos,
            organization_id=tenant.organization_id,
            campaign_id=body.campaign_id,
            brand_id=body.brand_id,
            leads=[lead.model_dump(by_alias=True) for lead in body.leads],
            push_run_id=run_id,
            actor_org_id=body.org_id,
            actor_user_id=body.user_id,
        )
        await repos.session.commit()
    except Exception:
        await finish_run(run_id, ok=False)
        raise

    await finish_run(run_id)
    return result.to_response()


@router.post("/buffer/next")
async def next_lead(
    body: NextRequest,
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
    providers: Providers = Depends(get_providers),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
) -> Response:
    _check_scope(body.campaign_id, body.brand_id)
    key = body.idempotency_key or idempotency_key

    # the run is created lazily so a replayed request does not open a new one
    run_ids: list[str] = []

    async def _pull() -> dict:
        run_id = await start_child_run(
            parent_run_id=body.parent_run_id,
            task_name="lead-serve",
            app_id=tenant.app_id,
            org_id=body.org_id or tenant.external_org_id,
            user_id=body.user_id,
            brand_id=body.brand_id,
            campaign_id=body.campaign_id,
        )
        if run_id:
            run_ids.append(run_id)
        result = await pull_next(
            repos,
            providers,
            organization_id=tenant.organization_id,
            campaign_id=body.campaign_id,
            brand_id=body.brand_id,
            search_params=body.search_params,
            parent_run_id=body.parent_run_id,
            run_id=run_id,
            app_id=tenant.app_id,
            actor_org_id=body.org_id,
            actor_user_id=body.user_id,
        )
        log.info("next ns=%s outcome=%s iterations=%s", body.campaign_id, result.outcome.value, result.iterations)
        return result.to_response()

    try:
        content = await run_idempotent(
            repos,
            key=key,
            organization_id=tenant.organization_id,
            compute=_pull,
        )
        await repos.session.commit()
    except Exception:
        for run_id in run_ids:
            await finish_run(run_id, ok=False)
        raise

    for run_id in run_ids:
        await finish_run(run_id)
    return Response(content=content, media_type="application/json")
