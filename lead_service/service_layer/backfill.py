# lead_service/service_layer/backfill.py
"""
Backfill walker: one search page per call.

The cursor ({page, exhausted}) is durable per (organization, namespace).
Every fetched page advances it, even a page of nothing but duplicates, so
repeated calls keep walking; once exhausted it stays that way until an
operator resets it.
"""
from __future__ import annotations

import logging
from typing import Any

from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..domain.policies import merge_payload, normalize_email
from ..domain.types import CursorState, FillResult, FillStats, PersonResult, PullOutcome
from .cursors import load_cursor, save_cursor
from .dedup import is_served
from .providers import Providers
from .search_transform import TranslationError

log = logging.getLogger(__name__)


async def _stage_candidate(
    repos: SqlAlchemyRepos,
    person: PersonResult,
    stats: FillStats,
    *,
    organization_id: int,
    namespace: str,
    brand_id: str | None,
    scope_key: str,
    push_run_id: str | None,
    actor_org_id: str | None,
    actor_user_id: str | None,
) -> None:
    pid = person.id
    email = normalize_email(person.email)
    payload: Any = person.raw

    if pid and await repos.buffer.has_person(
        organization_id=organization_id, namespace=namespace, external_person_id=pid
    ):
        stats.already_buffered += 1
        return

    if not email:
        if not pid:
            log.debug("candidate without id or email, dropped")
            return
        cached = await repos.enrichments.by_person_id(pid)
        if cached is not None:
            if not cached.email:
                stats.no_email_cached += 1
                return
            email = cached.email
            payload = merge_payload(person.raw, cached.raw_response)

    if email and await is_served(repos, organization_id=organization_id, scope_key=scope_key, email=email):
        stats.already_served += 1
        return

    await repos.buffer.add(
        organization_id=organization_id,
        namespace=namespace,
        brand_id=brand_id,
        email=email,
        external_person_id=pid,
        payload=payload,
        push_run_id=push_run_id,
        actor_org_id=actor_org_id,
        actor_user_id=actor_user_id,
    )
    stats.filled += 1


async def fill_buffer_from_search(
    repos: SqlAlchemyRepos,
    providers: Providers,
    *,
    organization_id: int,
    namespace: str,
    brand_id: str | None,
    scope_key: str,
    search_params: dict[str, Any],
    run_id: str | None = None,
    app_id: str | None = None,
    actor_org_id: str | None = None,
    actor_user_id: str | None = None,
) -> FillResult:
    cursor = await load_cursor(repos, organization_id=organization_id, namespace=namespace)
    if cursor.exhausted:
        return FillResult(filled=0, exhausted=True)

    if providers.search is None:
        log.warning("no search provider configured, cannot backfill ns=%s", namespace)
        return FillResult(filled=0, exhausted=False, failure=PullOutcome.upstream_unavailable)

    filters = search_params
    if providers.translator is not None:
        try:
            filters = await providers.translator.translate(
                search_params, campaign_id=namespace, brand_id=brand_id, run_id=run_id
            )
        except TranslationError as e:
            log.warning("search filter translation failed ns=%s: %s", namespace, e)
            return FillResult(filled=0, exhausted=False, failure=PullOutcome.translation_failed)

    context = {
        "runId": run_id,
        "appId": app_id,
        "orgId": actor_org_id,
        "brandId": brand_id,
        "campaignId": namespace,
    }
    page = await providers.search.search(filters, cursor.page, context=context)

    if page is None or not page.people:
        # a provider that cannot answer is treated like one with nothing left
        log.warning("search page=%s empty or failed, cursor exhausted ns=%s", cursor.page, namespace)
        await save_cursor(
            repos,
            organization_id=organization_id,
            namespace=namespace,
            state=CursorState(page=cursor.page, exhausted=True),
        )
        return FillResult(filled=0, exhausted=True)

    stats = FillStats()
    for person in page.people:
        await _stage_candidate(
            repos,
            person,
            stats,
            organization_id=organization_id,
            namespace=namespace,
            brand_id=brand_id,
            scope_key=scope_key,
            push_run_id=run_id,
            actor_org_id=actor_org_id,
            actor_user_id=actor_user_id,
        )

    exhausted = cursor.page >= page.total_pages
    await save_cursor(
        repos,
        organization_id=organization_id,
        namespace=namespace,
        state=CursorState(page=cursor.page + 1, exhausted=exhausted),
    )

    log.info("backfill ns=%s page=%s/%s %s", namespace, cursor.page, page.total_pages, stats.snapshot())
    return FillResult(filled=stats.filled, exhausted=exhausted and stats.filled == 0)
