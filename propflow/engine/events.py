"""
Domain event types and schemas.

Every event crossing the bus uses the EventBridge envelope (source,
detail-type, detail, time, ...). The detail payload is a tagged union keyed
by detail-type; parse_event() validates both layers at the boundary so
unknown or malformed shapes are rejected before any business logic runs.
"""

import json
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from propflow.core.exceptions import EventValidationError


class EventType(str, Enum):
    """All domain event detail-types."""

    CONTRACT_STATUS_CHANGED = "ContractStatusChanged"
    PUBLICATION_APPROVAL_REQUESTED = "PublicationApprovalRequested"
    PUBLICATION_EVALUATION_COMPLETED = "PublicationEvaluationCompleted"


class EvaluationResult(str, Enum):
    """Outcome of a publication evaluation."""

    APPROVED = "APPROVED"
    DECLINED = "DECLINED"


class ContractStatusChanged(BaseModel):
    """A contract's status moved (created, approved, ...)."""

    model_config = ConfigDict(extra="ignore")

    contract_id: str
    property_id: str
    contract_status: str
    contract_last_modified_on: str


class Address(BaseModel):
    country: str
    city: str
    street: str
    number: str


class PublicationApprovalRequested(BaseModel):
    """A listing owner asked for a property to be published."""

    model_config = ConfigDict(extra="ignore")

    property_id: str
    address: Address
    description: str = ""
    images: List[str] = Field(default_factory=list)
    listprice: Optional[float] = None
    currency: Optional[str] = None
    status: str = "PENDING"


class PublicationEvaluationCompleted(BaseModel):
    """The approval workflow reached a verdict for a property."""

    model_config = ConfigDict(extra="ignore")

    property_id: str
    evaluation_result: str


DETAIL_MODELS: Dict[EventType, Type[BaseModel]] = {
    EventType.CONTRACT_STATUS_CHANGED: ContractStatusChanged,
    EventType.PUBLICATION_APPROVAL_REQUESTED: PublicationApprovalRequested,
    EventType.PUBLICATION_EVALUATION_COMPLETED: PublicationEvaluationCompleted,
}

DetailT = TypeVar("DetailT", bound=BaseModel)


class EventEnvelope(BaseModel, Generic[DetailT]):
    """EventBridge event envelope around a typed detail payload."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = "0"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    detail_type: EventType = Field(alias="detail-type")
    source: str
    account: str = ""
    time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    region: str = ""
    resources: List[str] = Field(default_factory=list)
    detail: DetailT

    def to_dict(self) -> Dict[str, Any]:
        """Render the envelope with wire field names."""
        return self.model_dump(mode="json", by_alias=True)

    def to_put_events_entry(self, event_bus_name: str) -> Dict[str, Any]:
        """Render the envelope as an EventBridge PutEvents request entry."""
        return {
            "EventBusName": event_bus_name,
            "Time": self.time,
            "Source": self.source,
            "DetailType": self.detail_type.value,
            "Detail": json.dumps(self.detail.model_dump(mode="json")),
            "Resources": list(self.resources),
        }


def parse_event(
    raw: Dict[str, Any], expected: Optional[EventType] = None
) -> EventEnvelope:
    """
    Validate a raw EventBridge event and type its detail payload.

    Args:
        raw: Event as delivered to a Lambda target
        expected: Optionally, the only detail-type the caller accepts

    Returns:
        EventEnvelope whose ``detail`` is the matching detail model

    Raises:
        EventValidationError: Unknown detail-type, a detail-type other than
            ``expected``, or a payload that fails validation
    """
    if not isinstance(raw, dict):
        raise EventValidationError(f"Event must be an object, got {type(raw).__name__}")

    raw_type = raw.get("detail-type", raw.get("detail_type"))
    try:
        event_type = EventType(raw_type)
    except ValueError:
        raise EventValidationError(f"Unknown detail-type: {raw_type!r}", detail_type=raw_type)

    if expected is not None and event_type != expected:
        raise EventValidationError(
            f"Expected {expected.value} event, got {event_type.value}",
            detail_type=event_type.value,
        )

    model = DETAIL_MODELS[event_type]
    try:
        return EventEnvelope[model].model_validate(raw)  # type: ignore[valid-type]
    except PydanticValidationError as e:
        raise EventValidationError(
            f"Invalid {event_type.value} event: {e.error_count()} validation error(s)",
            errors=e.errors(include_url=False),
        ) from e


# Event creation helpers for each detail-type


def _envelope(event_type: EventType, source: str, detail: BaseModel) -> EventEnvelope:
    return EventEnvelope[type(detail)](  # type: ignore[misc]
        detail_type=event_type,
        source=source,
        detail=detail,
    )


def create_contract_status_changed_event(
    source: str,
    contract_id: str,
    property_id: str,
    contract_status: str,
    contract_last_modified_on: str,
) -> EventEnvelope:
    """Create a ContractStatusChanged event."""
    return _envelope(
        EventType.CONTRACT_STATUS_CHANGED,
        source,
        ContractStatusChanged(
            contract_id=contract_id,
            property_id=property_id,
            contract_status=contract_status,
            contract_last_modified_on=contract_last_modified_on,
        ),
    )


def create_publication_approval_requested_event(
    source: str,
    property_id: str,
    address: Dict[str, str],
    description: str = "",
    images: Optional[List[str]] = None,
    listprice: Optional[float] = None,
    currency: Optional[str] = None,
) -> EventEnvelope:
    """Create a PublicationApprovalRequested event with status PENDING."""
    return _envelope(
        EventType.PUBLICATION_APPROVAL_REQUESTED,
        source,
        PublicationApprovalRequested(
            property_id=property_id,
            address=Address(**address),
            description=description,
            images=images or [],
            listprice=listprice,
            currency=currency,
            status="PENDING",
        ),
    )


def create_publication_evaluation_completed_event(
    source: str, property_id: str, evaluation_result: str
) -> EventEnvelope:
    """Create a PublicationEvaluationCompleted event."""
    return _envelope(
        EventType.PUBLICATION_EVALUATION_COMPLETED,
        source,
        PublicationEvaluationCompleted(
            property_id=property_id, evaluation_result=evaluation_result
        ),
    )
