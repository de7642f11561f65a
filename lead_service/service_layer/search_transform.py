# lead_service/service_layer/search_transform.py
"""
Loose search intent -> provider filter JSON.

The LLM proposes filters, the provider's own validator accepts or rejects
them, and rejections are fed back for another attempt. Accepted translations
are cached for months: the same input always means the same filters.
"""
from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import time
from typing import Any, Protocol

import httpx
from openai import OpenAIError

from ..adapters.clients.base import FilterValidator
from ..adapters.clients.context import ContextClient
from ..adapters.clients.llm import LlmReply
from ..config import settings
from ..domain.types import ValidationError
from .runs import log_costs

log = logging.getLogger(__name__)


class TranslationError(RuntimeError):
    def __init__(self, message: str, errors: list[ValidationError] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class LlmClient(Protocol):
    async def complete(self, system: str, user: str) -> LlmReply:
        ...


class TranslationCache(Protocol):
    """Shared keyed store with explicit TTL (swap for a networked cache in multi-process deployments)."""

    async def get(self, key: str) -> dict[str, Any] | None:
        ...

    async def put(self, key: str, value: dict[str, Any], ttl_s: float) -> None:
        ...


class InProcessTTLCache:
    def __init__(self) -> None:
        self._data: dict[str, tuple[float, dict[str, Any]]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.time() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    async def put(self, key: str, value: dict[str, Any], ttl_s: float) -> None:
        self._data[key] = (time.time() + ttl_s, value)


def cache_key(raw_filters: dict[str, Any]) -> str:
    normalized = json.dumps(raw_filters, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def _parse_json_object(text: str) -> dict[str, Any] | None:
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def build_system_prompt(
    industries: list[dict[str, Any]],
    employee_ranges: list[dict[str, Any]],
    *,
    campaign: dict[str, Any] | None = None,
    brand: dict[str, Any] | None = None,
) -> str:
    lines = [
        "You convert loose lead-search intent into the people-search provider's filter JSON.",
        "Reply with one JSON object and nothing else.",
        "",
        "Person filters: personTitles, personLocations, personSeniorities, contactEmailStatus.",
        "Organization filters: organizationLocations, qOrganizationIndustryTagIds,",
        "organizationNumEmployeesRanges, qOrganizationKeywordTags, qOrganizationDomains, revenueRange.",
        "Free text: qKeywords (supports OR).",
        "",
        "Different fields are AND'ed, values inside one field are OR'ed.",
        "Use at most 3 fields, prefer 1-2, and list many title variations.",
        "Never combine qOrganizationKeywordTags with qOrganizationIndustryTagIds.",
        "Only add organizationLocations when location is explicitly required.",
    ]
    if employee_ranges:
        lines += ["", "Valid organizationNumEmployeesRanges values:"]
        lines += [f'- "{r.get("value")}" ({r.get("label", "")})' for r in employee_ranges]
    if industries:
        lines += ["", "Valid qOrganizationIndustryTagIds values:"]
        lines += [f'- "{i.get("name")}"' for i in industries]
    if campaign:
        lines += ["", "Campaign context:", json.dumps(campaign, default=str)]
    if brand:
        lines += ["", "Brand context:", json.dumps(brand, default=str)]
    return "\n".join(lines)


def build_retry_prompt(previous: str, errors: list[ValidationError]) -> str:
    bullets = []
    for e in errors:
        got = f" (got: {json.dumps(e.value, default=str)})" if e.value is not None else ""
        bullets.append(f'- field "{e.field}": {e.message}{got}')
    return (
        "Your previous output was rejected:\n\n"
        f"{previous}\n\n"
        "Validation errors:\n" + "\n".join(bullets) + "\n\n"
        "Return corrected JSON only."
    )


class SearchTransformer:
    def __init__(
        self,
        *,
        llm: LlmClient,
        validator: FilterValidator,
        context: ContextClient | None = None,
        cache: TranslationCache | None = None,
        max_attempts: int | None = None,
        cost_prefix: str = "llm-filter-translation",
    ) -> None:
        self.llm = llm
        self.validator = validator
        self.context = context
        self.cache = cache or InProcessTTLCache()
        self.max_attempts = int(max_attempts or settings.LLM_MAX_ATTEMPTS)
        self.cost_prefix = cost_prefix

    async def _load_context(
        self, campaign_id: str | None, brand_id: str | None
    ) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        if self.context is None:
            return None, None

        async def _none() -> None:
            return None

        campaign, brand = await asyncio.gather(
            self.context.fetch_campaign(campaign_id) if campaign_id else _none(),
            self.context.fetch_brand(brand_id) if brand_id else _none(),
            return_exceptions=True,
        )
        # context is optional: a failed lookup is simply left out
        return (
            campaign if isinstance(campaign, dict) else None,
            brand if isinstance(brand, dict) else None,
        )

    async def _load_reference(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        industries, ranges = await asyncio.gather(
            self.validator.industries(),
            self.validator.employee_ranges(),
            return_exceptions=True,
        )
        if isinstance(industries, BaseException):
            log.warning("industry reference data unavailable: %s", industries)
            industries = []
        if isinstance(ranges, BaseException):
            log.warning("employee range reference data unavailable: %s", ranges)
            ranges = []
        return industries, ranges

    async def translate(
        self,
        raw_filters: dict[str, Any],
        *,
        campaign_id: str | None = None,
        brand_id: str | None = None,
        run_id: str | None = None,
    ) -> dict[str, Any]:
        key = cache_key(raw_filters)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        (campaign, brand), (industries, ranges) = await asyncio.gather(
            self._load_context(campaign_id, brand_id),
            self._load_reference(),
        )
        system = build_system_prompt(industries, ranges, campaign=campaign, brand=brand)

        previous = ""
        errors: list[ValidationError] = []
        tokens_in = 0
        tokens_out = 0

        try:
            for attempt in range(1, self.max_attempts + 1):
                if attempt == 1:
                    user = "Translate these search parameters:\n" + json.dumps(raw_filters, indent=2, default=str)
                else:
                    user = build_retry_prompt(previous, errors)

                try:
                    reply = await self.llm.complete(system, user)
                except OpenAIError as e:
                    raise TranslationError(f"llm unavailable: {e}") from e
                tokens_in += reply.input_tokens
                tokens_out += reply.output_tokens
                previous = reply.text

                parsed = _parse_json_object(reply.text)
                if parsed is None:
                    log.warning("filter translation attempt %s: not a JSON object", attempt)
                    errors = [ValidationError(field="root", message="Response was not a valid JSON object")]
                    continue

                try:
                    result = await self.validator.validate(parsed)
                except httpx.HTTPError as e:
                    raise TranslationError(f"filter validator unavailable: {e}") from e
                if result.valid:
                    ttl_s = float(settings.TRANSLATION_CACHE_TTL_DAYS) * 24 * 3600
                    await self.cache.put(key, parsed, ttl_s)
                    return parsed

                log.warning("filter translation attempt %s rejected: %s", attempt, result.errors)
                errors = result.errors
        finally:
            await log_costs(
                run_id,
                [
                    {"costName": f"{self.cost_prefix}-tokens-input", "quantity": tokens_in},
                    {"costName": f"{self.cost_prefix}-tokens-output", "quantity": tokens_out},
                ],
            )

        raise TranslationError(
            f"filter translation failed after {self.max_attempts} attempts",
            errors=errors,
        )
