import pytest

from lead_service.config import settings


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_tenant_headers_required(client):
    r = await client.post("/buffer/push", json={"campaignId": "c", "brandId": "b", "leads": []})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_api_key_enforced_when_configured(client, tenant_headers, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "k")

    r = await client.get("/cursor/camp_1", headers=tenant_headers)
    assert r.status_code == 401

    r = await client.get("/cursor/camp_1", headers={**tenant_headers, "X-API-Key": "k"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_push_then_next_flow(client, tenant_headers):
    body = {"campaignId": "camp_1", "brandId": "brand_1", "leads": [{"email": "a@x.com", "data": {"n": 1}}]}

    r = await client.post("/buffer/push", json=body, headers=tenant_headers)
    assert r.status_code == 200
    assert r.json() == {"buffered": 1, "skippedAlreadyServed": 0}

    r = await client.post("/buffer/next", json={"campaignId": "camp_1", "brandId": "brand_1"}, headers=tenant_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["found"] is True
    assert data["lead"]["email"] == "a@x.com"
    assert data["lead"]["data"] == {"n": 1}

    r = await client.post("/buffer/push", json=body, headers=tenant_headers)
    assert r.json() == {"buffered": 0, "skippedAlreadyServed": 1}

    r = await client.post("/buffer/next", json={"campaignId": "camp_1", "brandId": "brand_1"}, headers=tenant_headers)
    assert r.json() == {"found": False, "reason": "empty"}


@pytest.mark.asyncio
async def test_missing_brand_is_rejected_before_any_write(client, tenant_headers):
    r = await client.post(
        "/buffer/push",
        json={"campaignId": "camp_1", "leads": [{"email": "a@x.com"}]},
        headers=tenant_headers,
    )
    assert r.status_code == 400

    r = await client.get("/stats", headers=tenant_headers)
    assert r.json()["buffered"] == 0


@pytest.mark.asyncio
async def test_next_is_idempotent_per_key(client, tenant_headers):
    await client.post(
        "/buffer/push",
        json={"campaignId": "camp_1", "brandId": "brand_1", "leads": [{"email": "a@x.com"}, {"email": "b@x.com"}]},
        headers=tenant_headers,
    )
    next_body = {"campaignId": "camp_1", "brandId": "brand_1"}

    r1 = await client.post("/buffer/next", json=next_body, headers={**tenant_headers, "Idempotency-Key": "req-1"})
    r2 = await client.post("/buffer/next", json=next_body, headers={**tenant_headers, "Idempotency-Key": "req-1"})
    r3 = await client.post("/buffer/next", json={**next_body, "idempotencyKey": "req-1"}, headers=tenant_headers)

    assert r1.content == r2.content == r3.content
    assert r1.json()["lead"]["email"] == "a@x.com"

    r = await client.get("/stats", headers=tenant_headers)
    assert r.json()["served"] == 1
    assert r.json()["buffered"] == 1


@pytest.mark.asyncio
async def test_next_with_search_params_backfills(client, tenant_headers, search, enricher):
    search.pages = {1: [{"id": "p1"}]}
    enricher.emails = {"p1": "found@x.com"}

    r = await client.post(
        "/buffer/next",
        json={"campaignId": "camp_1", "brandId": "brand_1", "searchParams": {"personTitles": ["CTO"]}},
        headers=tenant_headers,
    )

    assert r.json()["lead"]["email"] == "found@x.com"
    assert r.json()["lead"]["externalId"] == "p1"

    r = await client.get("/cursor/camp_1", headers=tenant_headers)
    assert r.json() == {"state": {"page": 2, "exhausted": True}}


@pytest.mark.asyncio
async def test_cursor_roundtrip_and_reset(client, tenant_headers):
    r = await client.get("/cursor/camp_1", headers=tenant_headers)
    assert r.json() == {"state": None}

    r = await client.put("/cursor/camp_1", json={"state": {"page": 4, "exhausted": True}}, headers=tenant_headers)
    assert r.json() == {"ok": True}

    r = await client.get("/cursor/camp_1", headers=tenant_headers)
    assert r.json() == {"state": {"page": 4, "exhausted": True}}

    r = await client.put("/cursor/camp_1", json={}, headers=tenant_headers)
    assert r.status_code == 422

    r = await client.delete("/cursor/camp_1", headers=tenant_headers)
    assert r.json() == {"ok": True, "deleted": True}
    r = await client.get("/cursor/camp_1", headers=tenant_headers)
    assert r.json() == {"state": None}


@pytest.mark.asyncio
async def test_leads_listing_joins_enrichment(client, tenant_headers, enricher):
    enricher.emails = {"p1": "a@x.com"}
    await client.post(
        "/buffer/push",
        json={
            "campaignId": "camp_1",
            "brandId": "brand_1",
            "orgId": "clerk_org",
            "leads": [{"email": "", "externalId": "p1"}, {"email": "b@x.com"}],
        },
        headers=tenant_headers,
    )
    await client.post("/buffer/next", json={"campaignId": "camp_1", "brandId": "brand_1"}, headers=tenant_headers)
    await client.post("/buffer/next", json={"campaignId": "camp_1", "brandId": "brand_1"}, headers=tenant_headers)

    r = await client.get("/leads", params={"brandId": "brand_1"}, headers=tenant_headers)
    leads = {lead["email"]: lead for lead in r.json()["leads"]}

    assert set(leads) == {"a@x.com", "b@x.com"}
    assert leads["a@x.com"]["enrichment"]["firstName"] == "Ada"
    assert leads["a@x.com"]["orgId"] == "clerk_org"
    assert leads["b@x.com"]["enrichment"] is None

    r = await client.get("/leads", params={"brandId": "other"}, headers=tenant_headers)
    assert r.json() == {"leads": []}


@pytest.mark.asyncio
async def test_stats_get_and_post(client, tenant_headers):
    await client.post(
        "/buffer/push",
        json={"campaignId": "camp_1", "brandId": "brand_1", "leads": [{"email": "a@x.com"}, {"email": "", "externalId": "p9"}]},
        headers=tenant_headers,
    )
    await client.post("/buffer/next", json={"campaignId": "camp_1", "brandId": "brand_1"}, headers=tenant_headers)
    await client.post("/buffer/next", json={"campaignId": "camp_1", "brandId": "brand_1"}, headers=tenant_headers)

    r = await client.get("/stats", params={"campaignId": "camp_1"}, headers=tenant_headers)
    body = r.json()
    assert (body["served"], body["buffered"], body["skipped"]) == (1, 0, 1)
    assert body["provider"]["enrichedLeadsCount"] == 1

    r = await client.post("/stats", json={"appId": "app", "brandId": "brand_1"})
    assert r.json()["served"] == 1

    r = await client.post("/stats", json={"appId": "unknown-app"})
    assert r.json()["served"] == 0
    assert r.json()["provider"]["searchCount"] == 0


@pytest.mark.asyncio
async def test_enrich_endpoint(client, tenant_headers, enricher):
    enricher.emails = {"p1": "a@x.com"}

    r = await client.post("/enrich", json={"email": "a@x.com"}, headers=tenant_headers)
    assert r.status_code == 200
    assert r.json()["cached"] is False
    assert r.json()["externalPersonId"] == "p1"

    r = await client.post("/enrich", json={"email": "a@x.com"}, headers=tenant_headers)
    assert r.json()["cached"] is True

    r = await client.post("/enrich", json={"email": "nobody@x.com"}, headers=tenant_headers)
    assert r.status_code == 404
