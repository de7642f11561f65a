# lead_service/entrypoints/api/routers/cursor.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ....adapters.sqlalchemy_repos import SqlAlchemyRepos
from ....schemas import CursorOut, CursorPut
from ....service_layer.cursors import get_raw_state, put_raw_state, reset_cursor
from ..deps import Tenant, get_repos, require_api_key, resolve_organization

router = APIRouter(tags=["cursor"], dependencies=[Depends(require_api_key)])


@router.get("/cursor/{namespace}", response_model=CursorOut)
async def get_cursor(
    namespace: str,
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
) -> CursorOut:
    state = await get_raw_state(repos, organization_id=tenant.organization_id, namespace=namespace)
    await repos.session.commit()
    return CursorOut(state=state)


@router.put("/cursor/{namespace}")
async def put_cursor(
    namespace: str,
    body: CursorPut,
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
) -> dict[str, Any]:
    await put_raw_state(repos, organization_id=tenant.organization_id, namespace=namespace, state=body.state)
    await repos.session.commit()
    return {"ok": True}


@router.delete("/cursor/{namespace}")
async def delete_cursor(
    namespace: str,
    tenant: Tenant = Depends(resolve_organization),
    repos: SqlAlchemyRepos = Depends(get_repos),
) -> dict[str, Any]:
    deleted = await reset_cursor(repos, organization_id=tenant.organization_id, namespace=namespace)
    await repos.session.commit()
    return {"ok": True, "deleted": deleted}
