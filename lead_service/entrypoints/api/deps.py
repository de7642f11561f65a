# lead_service/entrypoints/api/deps.py
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ...adapters.sqlalchemy_repos import SqlAlchemyRepos
from ...config import settings
from ...db import get_session
from ...service_layer.providers import Providers


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if settings.API_KEY:
        if not x_api_key or x_api_key != settings.API_KEY:
            raise HTTPException(status_code=401, detail="Invalid API key")


def get_repos(session: AsyncSession = Depends(get_session)) -> SqlAlchemyRepos:
    # handlers commit explicitly via repos.session
    return SqlAlchemyRepos(session)


@dataclass(frozen=True)
class Tenant:
    organization_id: int
    app_id: str
    external_org_id: str


async def resolve_organization(
    x_app_id: str | None = Header(default=None, alias="x-app-id"),
    x_org_id: str | None = Header(default=None, alias="x-org-id"),
    repos: SqlAlchemyRepos = Depends(get_repos),
) -> Tenant:
    if not x_app_id or not x_org_id:
        raise HTTPException(status_code=400, detail="x-app-id and x-org-id headers required")
    org = await repos.organizations.ensure(app_id=x_app_id, external_id=x_org_id)
    return Tenant(organization_id=org.id, app_id=x_app_id, external_org_id=x_org_id)


def get_providers(x_org_id: str | None = Header(default=None, alias="x-org-id")) -> Providers:
    return Providers.from_settings(org_header=x_org_id)
