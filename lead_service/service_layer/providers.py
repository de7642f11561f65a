# lead_service/service_layer/providers.py
from __future__ import annotations

from dataclasses import dataclass

from ..adapters.clients.base import (
    DeliveryStatusProvider,
    EnrichmentProvider,
    FilterTranslator,
    ProviderStats,
    SearchProvider,
)
from ..adapters.clients.context import ContextClient
from ..adapters.clients.email_gateway import EmailGatewayClient
from ..adapters.clients.llm import OpenAIChatClient
from ..adapters.clients.search_service import SearchServiceClient
from ..config import settings
from .search_transform import InProcessTTLCache, SearchTransformer, TranslationCache

# process-wide; replace with a shared store when running more than one worker
_TRANSLATION_CACHE: TranslationCache = InProcessTTLCache()


@dataclass
class Providers:
    """External collaborators the pull / backfill loops talk to."""

    search: SearchProvider | None = None
    enricher: EnrichmentProvider | None = None
    translator: FilterTranslator | None = None
    delivery: DeliveryStatusProvider | None = None
    stats: ProviderStats | None = None

    @classmethod
    def from_settings(cls, *, org_header: str | None = None) -> "Providers":
        search = SearchServiceClient.from_settings(org_header=org_header)

        translator: FilterTranslator | None = None
        if settings.LLM_API_KEY:
            translator = SearchTransformer(
                llm=OpenAIChatClient(),
                validator=search,
                context=ContextClient(org_header=org_header),
                cache=_TRANSLATION_CACHE,
            )

        delivery = EmailGatewayClient() if settings.DELIVERY_CHECK_ENABLED else None
        return cls(
            search=search,
            enricher=search,
            translator=translator,
            delivery=delivery,
            stats=search,
        )
