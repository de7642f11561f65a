# lead_service/service_layer/pull.py
from __future__ import annotations

import logging
from typing import Any

from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..config import settings
from ..domain.policies import merge_payload, resolve_scope_key
from ..domain.types import PullOutcome, PullResult, ServedLeadView
from ..models import BufferStatus
from .backfill import fill_buffer_from_search
from .dedup import check_delivered, is_served, mark_served
from .enrichment import resolve_person_email
from .providers import Providers

log = logging.getLogger(__name__)


async def pull_next(
    repos: SqlAlchemyRepos,
    providers: Providers,
    *,
    organization_id: int,
    campaign_id: str,
    brand_id: str | None,
    search_params: dict[str, Any] | None = None,
    parent_run_id: str | None = None,
    run_id: str | None = None,
    app_id: str | None = None,
    actor_org_id: str | None = None,
    actor_user_id: str | None = None,
    max_iterations: int | None = None,
    max_empty_pages: int | None = None,
) -> PullResult:
    """
    Hand out the next not-yet-served lead for (organization, campaign).

    Drains the buffer first and backfills from search when it runs dry and
    search_params were given. The ServedLead insert is the only gate that
    decides a lead is ours: every check before it just saves work.

    Bounded: gives up after max_iterations rows/pages, or after
    max_empty_pages consecutive backfill pages that added nothing.
    """
    scope_key = resolve_scope_key(settings.DEDUP_SCOPE, namespace=campaign_id, brand_id=brand_id)
    max_iterations = int(max_iterations or settings.PULL_MAX_ITERATIONS)
    max_empty_pages = int(max_empty_pages or settings.PULL_MAX_EMPTY_PAGES)
    context = {
        "runId": run_id,
        "appId": app_id,
        "orgId": actor_org_id,
        "brandId": brand_id,
        "campaignId": campaign_id,
    }

    empty_pages = 0
    for iteration in range(1, max_iterations + 1):
        row = await repos.buffer.next_candidate(organization_id=organization_id, namespace=campaign_id)

        if row is None:
            if not search_params:
                return PullResult(PullOutcome.empty, iterations=iteration)

            fill = await fill_buffer_from_search(
                repos,
                providers,
                organization_id=organization_id,
                namespace=campaign_id,
                brand_id=brand_id,
                scope_key=scope_key,
                search_params=search_params,
                run_id=run_id,
                app_id=app_id,
                actor_org_id=actor_org_id,
                actor_user_id=actor_user_id,
            )
            if fill.failure is not None:
                return PullResult(fill.failure, iterations=iteration)
            if fill.filled > 0:
                empty_pages = 0
                continue
            if fill.exhausted:
                return PullResult(PullOutcome.exhausted, iterations=iteration)

            empty_pages += 1
            if empty_pages >= max_empty_pages:
                log.warning("pull ns=%s gave up after %s consecutive empty pages", campaign_id, empty_pages)
                return PullResult(PullOutcome.gave_up, iterations=iteration)
            continue

        email = row.email
        payload = row.payload

        if not email:
            if not row.external_person_id:
                log.debug("buffer row %s has neither email nor person id, skipped", row.id)
                await repos.buffer.set_status(row, BufferStatus.skipped)
                continue

            resolved = await resolve_person_email(
                repos, providers.enricher, row.external_person_id, context=context
            )
            if resolved.failed:
                # row stays buffered; the next pull retries it
                log.warning("enrichment unavailable for person=%s", row.external_person_id)
                return PullResult(PullOutcome.upstream_unavailable, iterations=iteration)
            if not resolved.email:
                await repos.buffer.set_status(row, BufferStatus.skipped)
                continue

            email = resolved.email
            payload = merge_payload(row.payload, resolved.data)
            await repos.buffer.fill_email(row, email=email, payload=payload)

        if providers.delivery is not None:
            delivered = await check_delivered(
                providers.delivery,
                brand_id=brand_id,
                campaign_id=campaign_id,
                items=[{"email": email, "leadId": row.external_person_id}],
            )
            if delivered.get(email):
                log.debug("%s already contacted per email gateway, skipped", email)
                await repos.buffer.set_status(row, BufferStatus.skipped)
                continue

        if await is_served(repos, organization_id=organization_id, scope_key=scope_key, email=email):
            log.debug("%s already served in scope=%s, skipped", email, scope_key)
            await repos.buffer.set_status(row, BufferStatus.skipped)
            continue

        inserted = await mark_served(
            repos,
            organization_id=organization_id,
            scope_key=scope_key,
            namespace=campaign_id,
            brand_id=brand_id,
            email=email,
            external_person_id=row.external_person_id,
            payload=payload,
            parent_run_id=parent_run_id,
            run_id=run_id,
            actor_org_id=row.actor_org_id,
            actor_user_id=row.actor_user_id,
        )
        if not inserted:
            log.info("%s served concurrently by another pull, skipped", email)
            await repos.buffer.set_status(row, BufferStatus.skipped)
            continue

        await repos.buffer.set_status(row, BufferStatus.served)
        log.info("served lead %s ns=%s", email, campaign_id)
        lead = ServedLeadView(
            email=email,
            external_id=row.external_person_id,
            data=payload,
            brand_id=brand_id,
            campaign_id=campaign_id,
            org_id=row.actor_org_id,
            user_id=row.actor_user_id,
        )
        return PullResult(PullOutcome.served, lead=lead, iterations=iteration)

    log.warning("pull ns=%s hit max iterations (%s), giving up", campaign_id, max_iterations)
    return PullResult(PullOutcome.gave_up, iterations=max_iterations)
