# lead_service/adapters/clients/search_service.py
from __future__ import annotations

import logging
import math
import time
from typing import Any

import httpx

from ...config import settings
from ...domain.types import (
    EnrichResult,
    PersonResult,
    SearchPage,
    ValidationError,
    ValidationResult,
)
from .http_resilience import service_request

log = logging.getLogger(__name__)

# reference data is shared by every client instance in the process
_REFERENCE_CACHE: dict[str, tuple[float, list[dict[str, Any]]]] = {}


def _context_body(context: dict[str, Any] | None) -> dict[str, Any]:
    # lineage tags the provider uses for its own cost accounting
    if not context:
        return {}
    return {k: v for k, v in context.items() if v}


def _parse_search_response(raw: Any, page: int, per_page_default: int) -> SearchPage:
    raw = raw if isinstance(raw, dict) else {}
    people = [PersonResult.from_payload(p) for p in (raw.get("people") or []) if isinstance(p, dict)]

    pagination = raw.get("pagination")
    if isinstance(pagination, dict):
        total_entries = int(pagination.get("totalEntries") or pagination.get("total_entries") or 0)
        total_pages = int(pagination.get("totalPages") or pagination.get("total_pages") or 0)
        page = int(pagination.get("page") or page)
    elif raw.get("total_entries") is None and raw.get("totalEntries") is None:
        # unknown total: keep walking while pages come back non-empty
        total_entries = 0
        total_pages = page + 1 if people else page
    else:
        total_entries = int(raw.get("total_entries") or raw.get("totalEntries") or 0)
        per_page = int(raw.get("per_page") or raw.get("perPage") or per_page_default)
        total_pages = math.ceil(total_entries / per_page) if per_page > 0 else 0

    return SearchPage(people=people, page=page, total_pages=total_pages, total_entries=total_entries)


class SearchServiceClient:
    """
    HTTP client for the people search / enrichment provider.

    search() and enrich() never raise on transport problems: they log and
    return None so the walker can degrade. validate() raises, since the
    translator needs to know the validator itself is down.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        org_header: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.SEARCH_SERVICE_URL
        self.api_key = api_key if api_key is not None else settings.SEARCH_SERVICE_API_KEY
        self.org_header = org_header
        self.transport = transport

    @classmethod
    def from_settings(cls, *, org_header: str | None = None) -> "SearchServiceClient":
        return cls(org_header=org_header)

    def _headers(self) -> dict[str, str]:
        return {"x-org-id": self.org_header} if self.org_header else {}

    async def _call(self, method: str, path: str, *, json: Any | None = None) -> Any:
        return await service_request(
            method,
            self.base_url,
            path,
            api_key=self.api_key,
            headers=self._headers(),
            json=json,
            transport=self.transport,
        )

    async def search(
        self, filters: dict[str, Any], page: int, *, context: dict[str, Any] | None = None
    ) -> SearchPage | None:
        body = {**filters, "page": page, **_context_body(context)}
        try:
            raw = await self._call("POST", "/search", json=body)
        except httpx.HTTPError as e:
            log.warning("search failed page=%s: %s", page, e)
            return None
        try:
            return _parse_search_response(raw, page, int(settings.SEARCH_DEFAULT_PER_PAGE))
        except (TypeError, ValueError) as e:
            log.warning("search page=%s: malformed pagination: %s", page, e)
            return None

    async def enrich(
        self,
        *,
        person_id: str | None = None,
        email: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> EnrichResult | None:
        if not person_id and not email:
            raise ValueError("enrich requires person_id or email")

        body: dict[str, Any] = {**_context_body(context)}
        if person_id:
            body["apolloPersonId"] = person_id
        if email:
            body["email"] = email

        try:
            raw = await self._call("POST", "/enrich", json=body)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return EnrichResult(person=None)
            log.warning("enrich failed person_id=%s: %s", person_id, e)
            return None
        except httpx.HTTPError as e:
            log.warning("enrich failed person_id=%s: %s", person_id, e)
            return None

        person = raw.get("person") if isinstance(raw, dict) else None
        if not isinstance(person, dict):
            return EnrichResult(person=None)
        return EnrichResult(person=PersonResult.from_payload(person))

    async def validate(self, filters: dict[str, Any]) -> ValidationResult:
        raw = await self._call("POST", "/validate", json={"endpoint": "search", "items": [filters]})
        results = raw.get("results") if isinstance(raw, dict) else None
        if not isinstance(results, list) or not results:
            results = [{}]
        first = results[0] if isinstance(results[0], dict) else {}
        errors = [
            ValidationError(field=str(e.get("field", "")), message=str(e.get("message", "")), value=e.get("value"))
            for e in (first.get("errors") or [])
            if isinstance(e, dict)
        ]
        return ValidationResult(valid=bool(first.get("valid")), errors=errors)

    async def _reference_data(self, path: str, key: str) -> list[dict[str, Any]]:
        now = time.time()
        hit = _REFERENCE_CACHE.get(path)
        if hit and now - hit[0] < float(settings.REFERENCE_CACHE_TTL_S):
            return hit[1]

        raw = await self._call("GET", path)
        items = raw if isinstance(raw, list) else (raw.get(key) if isinstance(raw, dict) else None)
        data = [x for x in (items or []) if isinstance(x, dict)]
        _REFERENCE_CACHE[path] = (now, data)
        return data

    async def industries(self) -> list[dict[str, Any]]:
        return await self._reference_data("/reference/industries", "industries")

    async def employee_ranges(self) -> list[dict[str, Any]]:
        return await self._reference_data("/reference/employee-ranges", "ranges")

    async def stats(self, filters: dict[str, Any]) -> dict[str, int]:
        empty = {"enrichedLeadsCount": 0, "searchCount": 0, "fetchedPeopleCount": 0, "totalMatchingPeople": 0}
        try:
            raw = await self._call("POST", "/stats", json=filters)
        except httpx.HTTPError as e:
            log.warning("provider stats failed: %s", e)
            return empty
        stats = raw.get("stats") if isinstance(raw, dict) else None
        return {**empty, **stats} if isinstance(stats, dict) else empty
