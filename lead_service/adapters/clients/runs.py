# lead_service/adapters/clients/runs.py
from __future__ import annotations

from typing import Any

import httpx

from ...config import settings
from .http_resilience import service_request


class RunsClient:
    """
    Remote run / cost tracker. Raises on failure; callers in
    service_layer.runs decide what to swallow.
    """

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(settings.RUNS_SERVICE_URL)

    async def _call(self, method: str, path: str, body: dict[str, Any]) -> Any:
        assert settings.RUNS_SERVICE_URL
        return await service_request(
            method,
            settings.RUNS_SERVICE_URL,
            f"/v1{path}",
            api_key=settings.RUNS_SERVICE_API_KEY,
            json=body,
            transport=self.transport,
            max_retries=0,
        )

    async def create_run(self, **params: Any) -> str:
        raw = await self._call("POST", "/runs", {k: v for k, v in params.items() if v is not None})
        return str(raw["id"])

    async def update_run(self, run_id: str, status: str) -> None:
        await self._call("PATCH", f"/runs/{run_id}", {"status": status})

    async def add_costs(self, run_id: str, items: list[dict[str, Any]]) -> None:
        if not items:
            return
        await self._call("POST", f"/runs/{run_id}/costs", {"items": items})
