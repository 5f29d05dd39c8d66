"""Tests for the contracts context."""

import pytest

from propflow.contracts.service import ContractService
from propflow.core.exceptions import ValidationError
from propflow.engine.bus import InMemoryEventBus
from propflow.engine.events import parse_event
from propflow.engine.streams import make_stream_record
from propflow.storage.memory import InMemoryContractStore

PROPERTY_ID = "usa/anytown/main-street/111"


@pytest.fixture
def store():
    return InMemoryContractStore()


@pytest.fixture
def bus():
    return InMemoryEventBus()


@pytest.fixture
def contracts(store, bus):
    return ContractService(store, bus, source="propflow.contracts")


class TestContractCommands:
    """Tests for create and approve."""

    @pytest.mark.asyncio
    async def test_create_draft(self, contracts, store):
        record = await contracts.create_contract(
            {
                "property_id": PROPERTY_ID,
                "seller_name": "John Doe",
                "address": {"country": "usa", "city": "anytown", "street": "main-street", "number": "111"},
            }
        )

        assert record.contract_status == "DRAFT"
        assert record.contract_created == record.contract_last_modified_on
        stored = await store.get_contract(PROPERTY_ID)
        assert stored.seller_name == "John Doe"
        assert stored.address["number"] == "111"

    @pytest.mark.asyncio
    async def test_create_twice(self, contracts):
        first = await contracts.create_contract({"property_id": PROPERTY_ID})
        second = await contracts.create_contract({"property_id": PROPERTY_ID})

        assert first is not None
        assert second is None

    @pytest.mark.asyncio
    async def test_approve(self, contracts):
        await contracts.create_contract({"property_id": PROPERTY_ID})

        record = await contracts.approve_contract({"property_id": PROPERTY_ID})

        assert record.contract_status == "APPROVED"

    @pytest.mark.asyncio
    async def test_approve_without_draft(self, contracts):
        assert await contracts.approve_contract({"property_id": PROPERTY_ID}) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PUT"])
    async def test_property_id_required(self, contracts, method):
        with pytest.raises(ValidationError):
            await contracts.handle_command(method, {})

    @pytest.mark.asyncio
    async def test_unsupported_method(self, contracts, store):
        assert await contracts.handle_command("DELETE", {"property_id": PROPERTY_ID}) is None
        assert await store.get_contract(PROPERTY_ID) is None


class TestPublishStatusChange:
    """Tests for turning contracts table writes into events."""

    @pytest.mark.asyncio
    async def test_insert_and_modify_published(self, contracts, store, bus):
        await contracts.create_contract({"property_id": PROPERTY_ID})
        await contracts.approve_contract({"property_id": PROPERTY_ID})

        for record in store.read_stream():
            await contracts.publish_status_change(record)

        events = [parse_event(e) for e in bus.events_of_type("ContractStatusChanged")]
        assert [e.detail.contract_status for e in events] == ["DRAFT", "APPROVED"]
        assert all(e.source == "propflow.contracts" for e in events)
        assert events[0].detail.contract_id == events[1].detail.contract_id

    @pytest.mark.asyncio
    async def test_remove_ignored(self, contracts, bus):
        record = make_stream_record(
            {"property_id": PROPERTY_ID},
            {"property_id": PROPERTY_ID, "contract_id": "c-1"},
            None,
        )

        assert await contracts.publish_status_change(record) is None
        assert not bus.published
