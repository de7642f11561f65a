import json
from datetime import datetime, timedelta

import pytest

from lead_service.models import IdempotencyRecord
from lead_service.service_layer.buffer import push_leads
from lead_service.service_layer.idempotency import prune_expired, run_idempotent
from lead_service.service_layer.pull import pull_next


def _counter(response):
    calls = []

    async def compute():
        calls.append(1)
        return response

    return compute, calls


@pytest.mark.asyncio
async def test_same_key_replays_stored_text(repos, org_id):
    compute, calls = _counter({"found": False, "reason": "empty"})

    a = await run_idempotent(repos, key="k1", organization_id=org_id, compute=compute, rng=lambda: 1.0)
    b = await run_idempotent(repos, key="k1", organization_id=org_id, compute=compute, rng=lambda: 1.0)

    assert a == b
    assert json.loads(a) == {"found": False, "reason": "empty"}
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_no_key_always_computes(repos, org_id):
    compute, calls = _counter({"found": False})

    await run_idempotent(repos, key=None, organization_id=org_id, compute=compute)
    await run_idempotent(repos, key="", organization_id=org_id, compute=compute)

    assert len(calls) == 2
    assert await repos.idempotency.get("") is None


@pytest.mark.asyncio
async def test_concurrent_duplicate_key_returns_first_stored_response(repos, org_id):
    async def compute():
        # a concurrent retry of the same request stores its answer first
        await repos.idempotency.save(idempotency_key="k1", organization_id=org_id, response_json='{"winner":true}')
        return {"winner": False}

    body = await run_idempotent(repos, key="k1", organization_id=org_id, compute=compute, rng=lambda: 1.0)

    assert body == '{"winner":true}'


@pytest.mark.asyncio
async def test_retried_pull_serves_one_lead(repos, providers, org_id):
    await push_leads(
        repos,
        organization_id=org_id,
        campaign_id="camp_1",
        brand_id="brand_1",
        leads=[{"email": "a@x.com"}, {"email": "b@x.com"}],
    )

    async def compute():
        res = await pull_next(repos, providers, organization_id=org_id, campaign_id="camp_1", brand_id="brand_1")
        return res.to_response()

    first = await run_idempotent(repos, key="req-1", organization_id=org_id, compute=compute, rng=lambda: 1.0)
    retry = await run_idempotent(repos, key="req-1", organization_id=org_id, compute=compute, rng=lambda: 1.0)

    assert first == retry
    assert json.loads(first)["lead"]["email"] == "a@x.com"
    assert await repos.served.count(organization_ids=[org_id]) == 1


@pytest.mark.asyncio
async def test_janitor_prunes_only_when_sampled(repos, org_id):
    old = IdempotencyRecord(
        idempotency_key="old",
        organization_id=org_id,
        response_json="{}",
        created_at=datetime.utcnow() - timedelta(hours=48),
    )
    repos.session.add(old)
    await repos.session.flush()
    compute, _ = _counter({"found": False})

    await run_idempotent(repos, key="k1", organization_id=org_id, compute=compute, rng=lambda: 0.99)
    assert await repos.idempotency.get("old") is not None

    await run_idempotent(repos, key="k2", organization_id=org_id, compute=compute, rng=lambda: 0.0)
    repos.session.expunge_all()
    assert await repos.idempotency.get("old") is None
    assert await repos.idempotency.get("k1") is not None


@pytest.mark.asyncio
async def test_prune_expired_respects_ttl(repos, org_id):
    repos.session.add(
        IdempotencyRecord(
            idempotency_key="recent",
            organization_id=org_id,
            response_json="{}",
            created_at=datetime.utcnow() - timedelta(hours=2),
        )
    )
    await repos.session.flush()

    assert await prune_expired(repos, ttl_hours=24) == 0
    assert await prune_expired(repos, ttl_hours=1) == 1
