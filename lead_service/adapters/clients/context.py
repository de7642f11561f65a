# lead_service/adapters/clients/context.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from .http_resilience import service_request

log = logging.getLogger(__name__)


class ContextClient:
    """
    Campaign and brand metadata, used only as prompt context.
    Every failure degrades to None.
    """

    def __init__(self, *, org_header: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.org_header = org_header
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {"x-org-id": self.org_header} if self.org_header else {}

    async def fetch_campaign(self, campaign_id: str) -> dict[str, Any] | None:
        try:
            raw = await service_request(
                "GET",
                settings.CAMPAIGN_SERVICE_URL,
                f"/campaigns/{campaign_id}",
                api_key=settings.CAMPAIGN_SERVICE_API_KEY,
                headers=self._headers(),
                transport=self.transport,
                max_retries=0,
            )
        except httpx.HTTPError as e:
            log.warning("campaign %s unavailable: %s", campaign_id, e)
            return None
        campaign = (raw or {}).get("campaign")
        return campaign if isinstance(campaign, dict) else None

    async def fetch_brand(self, brand_id: str) -> dict[str, Any] | None:
        try:
            raw = await service_request(
                "GET",
                settings.BRAND_SERVICE_URL,
                f"/brands/{brand_id}",
                api_key=settings.BRAND_SERVICE_API_KEY,
                headers=self._headers(),
                transport=self.transport,
                max_retries=0,
            )
        except httpx.HTTPError as e:
            log.warning("brand %s unavailable: %s", brand_id, e)
            return None
        brand = (raw or {}).get("brand")
        return brand if isinstance(brand, dict) else None
