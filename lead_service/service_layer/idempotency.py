# lead_service/service_layer/idempotency.py
from __future__ import annotations

import json
import logging
import random
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from ..adapters.sqlalchemy_repos import SqlAlchemyRepos
from ..config import settings

log = logging.getLogger(__name__)


def dump_response(response: dict[str, Any]) -> str:
    return json.dumps(response, separators=(",", ":"), default=str)


async def prune_expired(repos: SqlAlchemyRepos, *, ttl_hours: float | None = None) -> int:
    ttl = float(ttl_hours if ttl_hours is not None else settings.IDEMPOTENCY_TTL_HOURS)
    cutoff = datetime.utcnow() - timedelta(hours=ttl)
    n = await repos.idempotency.prune_older_than(cutoff)
    if n:
        log.info("pruned %s idempotency records older than %s", n, cutoff.isoformat())
    return n


async def run_idempotent(
    repos: SqlAlchemyRepos,
    *,
    key: str | None,
    organization_id: int,
    compute: Callable[[], Awaitable[dict[str, Any]]],
    rng: Callable[[], float] = random.random,
) -> str:
    """
    Returns the JSON text of the response.

    A known key replays the stored text verbatim and compute() is never
    called. When two requests with the same key race, the first stored
    response wins and both callers get it back.
    """
    if not key:
        return dump_response(await compute())

    hit = await repos.idempotency.get(key)
    if hit is not None:
        log.info("idempotency hit key=%s", key)
        return hit.response_json

    body = dump_response(await compute())
    saved = await repos.idempotency.save(idempotency_key=key, organization_id=organization_id, response_json=body)
    if not saved:
        winner = await repos.idempotency.get(key)
        if winner is not None:
            body = winner.response_json

    if rng() < float(settings.IDEMPOTENCY_PRUNE_PROBABILITY):
        await prune_expired(repos)

    return body
