# lead_service/adapters/clients/email_gateway.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from .http_resilience import service_request

log = logging.getLogger(__name__)


class EmailGatewayClient:
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    async def check(
        self, *, brand_id: str | None, campaign_id: str | None, items: list[dict[str, Any]]
    ) -> list[dict[str, Any]] | None:
        """
        Per-item delivery status, or None if the gateway could not be reached.
        """
        body: dict[str, Any] = {"items": items}
        if brand_id:
            body["brandId"] = brand_id
        if campaign_id:
            body["campaignId"] = campaign_id

        try:
            raw = await service_request(
                "POST",
                settings.EMAIL_GATEWAY_SERVICE_URL,
                "/status",
                api_key=settings.EMAIL_GATEWAY_SERVICE_API_KEY,
                json=body,
                transport=self.transport,
                max_retries=0,
            )
        except httpx.HTTPError as e:
            log.warning("email gateway unreachable, skipping delivery check: %s", e)
            return None

        results = (raw or {}).get("results")
        return [r for r in results if isinstance(r, dict)] if isinstance(results, list) else None
