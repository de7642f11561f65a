import pytest
from sqlalchemy import select

from lead_service.domain.types import PullOutcome
from lead_service.models import BufferedLead, BufferStatus
from lead_service.service_layer.backfill import fill_buffer_from_search
from lead_service.service_layer.cursors import load_cursor, reset_cursor
from lead_service.service_layer.dedup import mark_served
from lead_service.service_layer.providers import Providers
from lead_service.service_layer.pull import pull_next
from lead_service.service_layer.search_transform import TranslationError

PARAMS = {"personTitles": ["CTO"]}


class FakeTranslator:
    def __init__(self, result=None, error=False):
        self.result = result
        self.error = error
        self.calls = []

    async def translate(self, raw_filters, *, campaign_id=None, brand_id=None, run_id=None):
        self.calls.append(raw_filters)
        if self.error:
            raise TranslationError("filter translation failed after 3 attempts")
        return self.result


async def _fill(repos, providers, org_id, **kw):
    return await fill_buffer_from_search(
        repos,
        providers,
        organization_id=org_id,
        namespace="camp_1",
        brand_id="brand_1",
        scope_key="brand_1",
        search_params=PARAMS,
        **kw,
    )


async def _pull(repos, providers, org_id, **kw):
    return await pull_next(
        repos,
        providers,
        organization_id=org_id,
        campaign_id="camp_1",
        brand_id="brand_1",
        search_params=PARAMS,
        **kw,
    )


async def _buffer(repos):
    return (await repos.session.execute(select(BufferedLead).order_by(BufferedLead.id))).scalars().all()


@pytest.mark.asyncio
async def test_fill_stages_one_page_and_advances_cursor(repos, providers, search, org_id):
    search.pages = {
        1: [{"id": "p1"}, {"id": "p2", "email": "two@x.com"}],
        2: [{"id": "p3"}],
    }

    res = await _fill(repos, providers, org_id)

    assert res.filled == 2
    assert not res.exhausted
    assert search.pages_fetched == [1]
    rows = await _buffer(repos)
    assert [(r.external_person_id, r.email) for r in rows] == [("p1", ""), ("p2", "two@x.com")]

    cursor = await load_cursor(repos, organization_id=org_id, namespace="camp_1")
    assert (cursor.page, cursor.exhausted) == (2, False)


@pytest.mark.asyncio
async def test_last_page_marks_cursor_exhausted(repos, providers, search, org_id):
    search.pages = {1: [{"id": "p1", "email": "a@x.com"}]}

    res = await _fill(repos, providers, org_id)

    # rows were added, so this fill is not reported as exhausted
    assert res.filled == 1
    assert not res.exhausted
    cursor = await load_cursor(repos, organization_id=org_id, namespace="camp_1")
    assert cursor.exhausted

    again = await _fill(repos, providers, org_id)
    assert (again.filled, again.exhausted) == (0, True)
    assert search.pages_fetched == [1]


@pytest.mark.asyncio
async def test_fill_skips_known_candidates(repos, providers, search, org_id):
    await repos.enrichments.store_tombstone("p_tomb")
    await mark_served(
        repos, organization_id=org_id, scope_key="brand_1", namespace="camp_1", brand_id="brand_1", email="served@x.com"
    )
    search.pages = {
        1: [
            {"id": "p_tomb"},
            {"id": "p_served", "email": "served@x.com"},
            {"id": "p_new"},
            {"id": "p_new"},
        ]
    }

    res = await _fill(repos, providers, org_id)

    assert res.filled == 1
    assert [r.external_person_id for r in await _buffer(repos)] == ["p_new"]


@pytest.mark.asyncio
async def test_fill_adopts_cached_email(repos, providers, search, enricher, org_id):
    enricher.emails = {"p1": "cached@x.com"}
    res = await enricher.enrich(person_id="p1")
    await repos.enrichments.store(external_person_id="p1", email="cached@x.com", person=res.person)
    enricher.calls.clear()
    search.pages = {1: [{"id": "p1", "name": "From Search"}]}

    await _fill(repos, providers, org_id)

    row = (await _buffer(repos))[0]
    assert row.email == "cached@x.com"
    assert row.payload["name"] == "From Search"
    assert row.payload["firstName"] == "Ada"
    assert enricher.calls == []


@pytest.mark.asyncio
async def test_pull_backfills_then_enriches(repos, providers, search, enricher, org_id):
    search.pages = {1: [{"id": "p1"}]}
    enricher.emails = {"p1": "a@x.com"}

    res = await _pull(repos, providers, org_id)

    assert res.found
    assert res.lead.email == "a@x.com"
    assert res.lead.external_id == "p1"


@pytest.mark.asyncio
async def test_all_duplicate_page_does_not_stop_the_walk(repos, providers, search, org_id):
    for email in ("d1@x.com", "d2@x.com"):
        await mark_served(
            repos, organization_id=org_id, scope_key="brand_1", namespace="camp_1", brand_id="brand_1", email=email
        )
    search.pages = {
        1: [{"id": "d1", "email": "d1@x.com"}, {"id": "d2", "email": "d2@x.com"}],
        2: [{"id": "n1", "email": "new@x.com"}],
    }

    res = await _pull(repos, providers, org_id)

    assert res.lead.email == "new@x.com"
    assert search.pages_fetched == [1, 2]


@pytest.mark.asyncio
async def test_empty_search_exhausts_and_stays_exhausted_until_reset(repos, providers, search, org_id):
    first = await _pull(repos, providers, org_id)

    assert first.outcome == PullOutcome.exhausted
    assert search.pages_fetched == [1]

    # provider now has someone, but the durable cursor keeps the namespace closed
    search.pages = {1: [{"id": "p1", "email": "a@x.com"}]}
    second = await _pull(repos, providers, org_id)
    assert second.outcome == PullOutcome.exhausted
    assert search.pages_fetched == [1]

    assert await reset_cursor(repos, organization_id=org_id, namespace="camp_1")
    third = await _pull(repos, providers, org_id)
    assert third.found
    assert search.pages_fetched == [1, 1]


@pytest.mark.asyncio
async def test_search_failure_marks_cursor_exhausted(repos, providers, search, org_id):
    search.fail = True

    res = await _fill(repos, providers, org_id)

    assert (res.filled, res.exhausted) == (0, True)
    cursor = await load_cursor(repos, organization_id=org_id, namespace="camp_1")
    assert (cursor.page, cursor.exhausted) == (1, True)


@pytest.mark.asyncio
async def test_empty_page_cap_gives_up(repos, providers, search, org_id):
    await repos.buffer.add(
        organization_id=org_id,
        namespace="camp_1",
        brand_id="brand_1",
        email="a@x.com",
        external_person_id="p1",
        payload=None,
    )
    rows = await _buffer(repos)
    await repos.buffer.set_status(rows[0], BufferStatus.served)

    # every page only repeats a person already in the buffer
    search.pages = {n: [{"id": "p1"}] for n in range(1, 51)}

    res = await _pull(repos, providers, org_id, max_empty_pages=3)

    assert res.outcome == PullOutcome.gave_up
    assert search.pages_fetched == [1, 2, 3]
    cursor = await load_cursor(repos, organization_id=org_id, namespace="camp_1")
    assert (cursor.page, cursor.exhausted) == (4, False)


@pytest.mark.asyncio
async def test_translated_filters_go_to_search(repos, search, enricher, org_id):
    translator = FakeTranslator(result={"qKeywords": "cto"})
    providers = Providers(search=search, enricher=enricher, translator=translator)
    search.pages = {1: [{"id": "p1", "email": "a@x.com"}]}

    await _fill(repos, providers, org_id)

    assert translator.calls == [PARAMS]
    assert search.calls[0][0] == {"qKeywords": "cto"}


@pytest.mark.asyncio
async def test_translation_failure_is_a_typed_outcome(repos, search, enricher, org_id):
    providers = Providers(search=search, enricher=enricher, translator=FakeTranslator(error=True))

    res = await _pull(repos, providers, org_id)

    assert res.outcome == PullOutcome.translation_failed
    assert not res.found
    assert search.calls == []
    assert await repos.cursors.get(organization_id=org_id, namespace="camp_1") is None
