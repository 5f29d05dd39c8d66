"""Tests for the web context: search projection reads and writes."""

import pytest

from propflow.core.exceptions import InvalidPropertyIdError, PropertyNotFoundError
from propflow.engine.bus import InMemoryEventBus
from propflow.engine.events import PublicationEvaluationCompleted, parse_event
from propflow.storage.memory import InMemoryPropertyStore
from propflow.web.publication import PublicationService
from propflow.web.search import PropertySearchService


@pytest.fixture
def store():
    return InMemoryPropertyStore()


@pytest.fixture
def bus():
    return InMemoryEventBus()


@pytest.fixture
def publication(store, bus):
    return PublicationService(store, bus, source="propflow.web")


@pytest.fixture
def search(store):
    return PropertySearchService(store)


class TestPropertySearch:
    """Tests for PropertySearchService."""

    @pytest.mark.asyncio
    async def test_city_search_returns_only_approved(self, publication, search, make_listing):
        """Test PENDING, DRAFT and NEW listings never appear in search results."""
        await publication.load_listings(
            [
                make_listing("111", status="PENDING"),
                make_listing("222", status="APPROVED"),
                make_listing("333", status="DRAFT"),
                make_listing("444", status="NEW"),
                make_listing("1", street="elm-street", status="APPROVED"),
            ]
        )

        rows = await search.list_by_city("usa", "anytown")

        assert {(r.street, r.number) for r in rows} == {("main-street", "222"), ("elm-street", "1")}
        assert all(r.status == "APPROVED" for r in rows)

    @pytest.mark.asyncio
    async def test_street_search(self, publication, search, make_listing):
        await publication.load_listings(
            [
                make_listing("222", status="APPROVED"),
                make_listing("1", street="elm-street", status="APPROVED"),
            ]
        )

        rows = await search.list_by_street("usa", "anytown", "main-street")
        assert [r.number for r in rows] == ["222"]

    @pytest.mark.asyncio
    async def test_search_normalises_path_segments(self, publication, search, make_listing):
        await publication.load_listings([make_listing("222", status="APPROVED")])

        rows = await search.list_by_city("USA", "Anytown")
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_unknown_city_is_empty(self, search):
        assert await search.list_by_city("usa", "nowhere") == []

    @pytest.mark.asyncio
    async def test_details_of_approved(self, publication, search, make_listing):
        await publication.load_listings([make_listing("222", status="APPROVED")])

        row = await search.property_details("usa", "anytown", "main-street", "222")

        assert row.listprice == 200000.0
        assert row.to_public_dict()["number"] == "222"
        assert "PK" not in row.to_public_dict()

    @pytest.mark.asyncio
    async def test_details_of_unapproved_same_as_missing(self, publication, search, make_listing):
        """Test a non-approved listing is indistinguishable from a missing one."""
        await publication.load_listings([make_listing("111", status="PENDING")])

        with pytest.raises(PropertyNotFoundError) as pending:
            await search.property_details("usa", "anytown", "main-street", "111")
        with pytest.raises(PropertyNotFoundError) as missing:
            await search.property_details("usa", "anytown", "main-street", "999")

        assert pending.value.message == missing.value.message == "No property found"
        assert pending.value.status_code == missing.value.status_code == 404


class TestPublicationService:
    """Tests for PublicationService."""

    @pytest.mark.asyncio
    async def test_load_listings(self, publication, store, make_listing):
        count = await publication.load_listings([make_listing("111"), make_listing("222")])

        assert count == 2
        row = await store.get_property("PROPERTY#usa#anytown", "main-street#111")
        assert row.status == "NEW"
        assert row.images == ["property_images/prop111_exterior1.jpg"]

    @pytest.mark.asyncio
    async def test_request_approval_publishes_event(self, publication, bus, make_listing):
        await publication.load_listings([make_listing("111")])

        event = await publication.request_approval("usa/anytown/main-street/111")

        assert event is not None
        published = bus.events_of_type("PublicationApprovalRequested")
        assert len(published) == 1
        parsed = parse_event(published[0])
        assert parsed.source == "propflow.web"
        assert parsed.detail.property_id == "usa/anytown/main-street/111"
        assert parsed.detail.address.street == "main-street"
        assert parsed.detail.description == "Bright family home with a lovely garden"
        assert parsed.detail.status == "PENDING"

    @pytest.mark.asyncio
    async def test_request_approval_of_approved_listing(self, publication, bus, make_listing):
        await publication.load_listings([make_listing("222", status="APPROVED")])

        assert await publication.request_approval("usa/anytown/main-street/222") is None
        assert not bus.published

    @pytest.mark.asyncio
    async def test_request_approval_unknown_listing(self, publication):
        with pytest.raises(PropertyNotFoundError):
            await publication.request_approval("usa/anytown/main-street/999")

    @pytest.mark.asyncio
    async def test_request_approval_invalid_id(self, publication):
        with pytest.raises(InvalidPropertyIdError):
            await publication.request_approval("usa/anytown")

    @pytest.mark.asyncio
    async def test_apply_evaluation_only_touches_status(self, publication, store, make_listing):
        await publication.load_listings([make_listing("111", status="PENDING")])

        key = await publication.apply_evaluation(
            PublicationEvaluationCompleted(
                property_id="usa/anytown/main-street/111", evaluation_result="APPROVED"
            )
        )

        row = await store.get_property(key.pk, key.sk)
        assert row.status == "APPROVED"
        assert row.description == "Bright family home with a lovely garden"

    @pytest.mark.asyncio
    async def test_apply_evaluation_invalid_id(self, publication):
        with pytest.raises(InvalidPropertyIdError):
            await publication.apply_evaluation(
                PublicationEvaluationCompleted(property_id="usa", evaluation_result="DECLINED")
            )
