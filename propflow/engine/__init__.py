"""Event, queue and change-stream plumbing shared by all bounded contexts."""

from propflow.engine.bus import EventBridgeBus, EventBus, InMemoryEventBus
from propflow.engine.events import (
    EvaluationResult,
    EventEnvelope,
    EventType,
    create_contract_status_changed_event,
    create_publication_approval_requested_event,
    create_publication_evaluation_completed_event,
    parse_event,
)
from propflow.engine.queue import InMemoryQueue, MessageQueue, SQSQueue
from propflow.engine.streams import deserialize_image, make_stream_record, serialize_image

__all__ = [
    "EvaluationResult",
    "EventBridgeBus",
    "EventBus",
    "EventEnvelope",
    "EventType",
    "InMemoryEventBus",
    "InMemoryQueue",
    "MessageQueue",
    "SQSQueue",
    "create_contract_status_changed_event",
    "create_publication_approval_requested_event",
    "create_publication_evaluation_completed_event",
    "deserialize_image",
    "make_stream_record",
    "parse_event",
    "serialize_image",
]
