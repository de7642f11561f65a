# tests/conftest.py
from __future__ import annotations

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lead_service.adapters.clients import search_service
from lead_service.adapters.clients.http_resilience import reset_circuits
from lead_service.adapters.sqlalchemy_repos import SqlAlchemyRepos
from lead_service.config import settings
from lead_service.db import get_session
from lead_service.entrypoints.api.deps import get_providers
from lead_service.entrypoints.fastapi_app import create_app
from lead_service.models import Base
from lead_service.service_layer.providers import Providers

from fakes import FakeEnricher, FakeSearch


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", None)
    monkeypatch.setattr(settings, "DEDUP_SCOPE", "brand")
    monkeypatch.setattr(settings, "DELIVERY_CHECK_ENABLED", False)
    monkeypatch.setattr(settings, "RUNS_SERVICE_URL", None)
    monkeypatch.setattr(settings, "LLM_API_KEY", None)
    monkeypatch.setattr(settings, "HTTP_MAX_RETRIES", 0)
    monkeypatch.setattr(settings, "HTTP_BACKOFF_BASE_S", 0.0)
    reset_circuits()
    search_service._REFERENCE_CACHE.clear()
    yield
    reset_circuits()


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
async def session(async_session_maker):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def repos(session):
    return SqlAlchemyRepos(session)


@pytest.fixture
async def org_id(repos):
    org = await repos.organizations.ensure(app_id="app", external_id="org_1")
    return org.id


@pytest.fixture
def search():
    return FakeSearch()


@pytest.fixture
def enricher():
    return FakeEnricher()


@pytest.fixture
def providers(search, enricher):
    return Providers(search=search, enricher=enricher, stats=search)


@pytest.fixture
async def client(async_session_maker, providers):
    app = create_app()

    async def _session():
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_providers] = lambda: providers

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def tenant_headers():
    return {"x-app-id": "app", "x-org-id": "org_1"}
