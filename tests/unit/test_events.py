"""Tests for event envelopes and boundary validation."""

import json
from datetime import datetime

import pytest

from propflow.core.exceptions import EventValidationError
from propflow.engine.events import (
    ContractStatusChanged,
    EventType,
    PublicationApprovalRequested,
    create_contract_status_changed_event,
    create_publication_approval_requested_event,
    create_publication_evaluation_completed_event,
    parse_event,
)


def contract_event(**detail_overrides):
    detail = {
        "contract_id": "c-1",
        "property_id": "usa/anytown/main-street/111",
        "contract_status": "DRAFT",
        "contract_last_modified_on": "2024-01-01T00:00:00+00:00",
    }
    detail.update(detail_overrides)
    return {
        "version": "0",
        "id": "evt-1",
        "detail-type": "ContractStatusChanged",
        "source": "propflow.contracts",
        "account": "123456789012",
        "time": "2024-01-01T00:00:00Z",
        "region": "us-east-1",
        "resources": [],
        "detail": detail,
    }


class TestParseEvent:
    """Tests for parse_event."""

    def test_typed_detail(self):
        """Test the detail is parsed into the model of its detail-type."""
        envelope = parse_event(contract_event())

        assert envelope.detail_type == EventType.CONTRACT_STATUS_CHANGED
        assert isinstance(envelope.detail, ContractStatusChanged)
        assert envelope.detail.contract_status == "DRAFT"
        assert envelope.source == "propflow.contracts"
        assert isinstance(envelope.time, datetime)

    def test_unknown_fields_ignored(self):
        envelope = parse_event(contract_event(seller_name="John"))
        assert envelope.detail.property_id == "usa/anytown/main-street/111"

    def test_unknown_detail_type(self):
        """Test unknown detail-types are rejected before any business logic."""
        event = contract_event()
        event["detail-type"] = "SomethingElse"

        with pytest.raises(EventValidationError) as exc_info:
            parse_event(event)
        assert exc_info.value.details["detail_type"] == "SomethingElse"

    def test_unexpected_detail_type(self):
        with pytest.raises(EventValidationError):
            parse_event(contract_event(), expected=EventType.PUBLICATION_EVALUATION_COMPLETED)

    def test_missing_detail_field(self):
        """Test a payload missing a required field is rejected."""
        event = contract_event()
        del event["detail"]["contract_id"]

        with pytest.raises(EventValidationError) as exc_info:
            parse_event(event)
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["errors"]

    def test_not_an_object(self):
        with pytest.raises(EventValidationError):
            parse_event(["not", "an", "event"])  # type: ignore[arg-type]


class TestEventCreation:
    """Tests for the event creation helpers."""

    def test_contract_status_changed_round_trips_through_wire_format(self):
        """Test an envelope rendered for the bus parses back to the same detail."""
        event = create_contract_status_changed_event(
            source="propflow.contracts",
            contract_id="c-1",
            property_id="usa/anytown/main-street/111",
            contract_status="APPROVED",
            contract_last_modified_on="2024-01-02T00:00:00+00:00",
        )
        wire = event.to_dict()

        assert wire["detail-type"] == "ContractStatusChanged"
        parsed = parse_event(wire)
        assert parsed.id == event.id
        assert parsed.detail == event.detail

    def test_approval_requested_is_pending(self):
        event = create_publication_approval_requested_event(
            source="propflow.web",
            property_id="usa/anytown/main-street/111",
            address={"country": "usa", "city": "anytown", "street": "main-street", "number": "111"},
            description="Lovely",
            images=["a.jpg"],
            listprice=200000,
            currency="USD",
        )
        assert isinstance(event.detail, PublicationApprovalRequested)
        assert event.detail.status == "PENDING"
        assert event.detail.address.number == "111"

    def test_put_events_entry(self):
        """Test the PutEvents entry carries the detail as a JSON string."""
        event = create_publication_evaluation_completed_event(
            source="propflow.properties",
            property_id="usa/anytown/main-street/111",
            evaluation_result="APPROVED",
        )
        entry = event.to_put_events_entry("PropFlowBus")

        assert entry["EventBusName"] == "PropFlowBus"
        assert entry["Source"] == "propflow.properties"
        assert entry["DetailType"] == "PublicationEvaluationCompleted"
        assert json.loads(entry["Detail"]) == {
            "property_id": "usa/anytown/main-street/111",
            "evaluation_result": "APPROVED",
        }
