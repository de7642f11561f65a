# lead_service/entrypoints/fastapi_app.py
from __future__ import annotations

from fastapi import FastAPI

from ..db import engine
from ..models import Base
from .api.routers import buffer, cursor, enrich, health, leads, stats
from .log_setup import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Lead Service - buffer and dedup")

    @app.on_event("startup")
    async def _startup() -> None:
        # Single place where DB tables are created in dev.
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # Routers
    app.include_router(health.router)
    app.include_router(buffer.router)
    app.include_router(cursor.router)
    app.include_router(leads.router)
    app.include_router(stats.router)
    app.include_router(enrich.router)

    return app
