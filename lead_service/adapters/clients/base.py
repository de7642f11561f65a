# lead_service/adapters/clients/base.py
from __future__ import annotations

from typing import Any, Protocol

from ...domain.types import EnrichResult, SearchPage, ValidationResult


class SearchProvider(Protocol):
    async def search(self, filters: dict[str, Any], page: int, *, context: dict[str, Any] | None = None) -> SearchPage | None:
        """One page of people. None means the provider could not be reached."""
        ...


class EnrichmentProvider(Protocol):
    async def enrich(
        self,
        *,
        person_id: str | None = None,
        email: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> EnrichResult | None:
        """None means the call failed; EnrichResult(person=None) means no match."""
        ...


class FilterValidator(Protocol):
    async def validate(self, filters: dict[str, Any]) -> ValidationResult:
        ...

    async def industries(self) -> list[dict[str, Any]]:
        ...

    async def employee_ranges(self) -> list[dict[str, Any]]:
        ...


class FilterTranslator(Protocol):
    async def translate(
        self,
        raw_filters: dict[str, Any],
        *,
        campaign_id: str | None = None,
        brand_id: str | None = None,
        run_id: str | None = None,
    ) -> dict[str, Any]:
        ...


class DeliveryStatusProvider(Protocol):
    async def check(
        self, *, brand_id: str | None, campaign_id: str | None, items: list[dict[str, Any]]
    ) -> list[dict[str, Any]] | None:
        ...


class ProviderStats(Protocol):
    async def stats(self, filters: dict[str, Any]) -> dict[str, int]:
        """Usage counters from the provider; zeros when unavailable."""
        ...
