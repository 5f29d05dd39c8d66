"""
Domain event bus.

EventBridgeBus publishes through boto3; InMemoryEventBus keeps published
events in a pending list and routes them to rule targets when the local
runtime drains it.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from propflow.core.exceptions import EventPublishError
from propflow.engine.events import EventEnvelope

EventTarget = Callable[[Dict[str, Any]], Awaitable[Any]]


class EventBus(ABC):
    """Abstract base class for event buses."""

    @abstractmethod
    async def put_event(self, envelope: EventEnvelope) -> str:
        """
        Publish a single event.

        Args:
            envelope: Event to publish

        Returns:
            The event id assigned by the bus

        Raises:
            EventPublishError: If the bus did not accept the event
        """
        pass


class EventBridgeBus(EventBus):
    """Publish events to an Amazon EventBridge bus."""

    def __init__(self, event_bus_name: str, client: Any = None, region: Optional[str] = None) -> None:
        self.event_bus_name = event_bus_name
        self.region = region
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("events", region_name=self.region)
        return self._client

    async def put_event(self, envelope: EventEnvelope) -> str:
        entry = envelope.to_put_events_entry(self.event_bus_name)
        try:
            response = await asyncio.to_thread(self.client.put_events, Entries=[entry])
        except (BotoCoreError, ClientError) as e:
            raise EventPublishError(
                f"EventBridge rejected {envelope.detail_type.value}: {e}",
                detail_type=envelope.detail_type.value,
            ) from e

        logger.debug("EventBridge response", response=response)
        if response.get("FailedEntryCount", 0) > 0:
            failed = response["Entries"][0]
            raise EventPublishError(
                f"EventBridge failed {envelope.detail_type.value}: "
                f"{failed.get('ErrorCode')} {failed.get('ErrorMessage')}",
                detail_type=envelope.detail_type.value,
            )
        return response["Entries"][0].get("EventId", envelope.id)


@dataclass
class EventRule:
    """Routes events with a detail-type (and optionally source) to a target."""

    name: str
    detail_type: str
    target: EventTarget
    source: Optional[str] = None

    def matches(self, event: Dict[str, Any]) -> bool:
        if event.get("detail-type") != self.detail_type:
            return False
        return self.source is None or event.get("source") == self.source


class InMemoryEventBus(EventBus):
    """
    In-process event bus for testing and local runs.

    Published events are queued until dispatch_pending() delivers them to
    matching rule targets. The last ``history_limit`` published events stay
    in ``published`` for inspection. A target that raises leaves the event
    in ``dead_letters``, which is bounded the same way.

    Example:
        >>> bus = InMemoryEventBus()
        >>> bus.add_rule("ContractStatusChanged", handler.handle)
        >>> await bus.put_event(event)
        >>> await bus.dispatch_pending()
    """

    def __init__(self, event_bus_name: str = "local", history_limit: int = 1000) -> None:
        self.event_bus_name = event_bus_name
        self.published: Deque[Dict[str, Any]] = deque(maxlen=history_limit)
        self.dead_letters: Deque[Dict[str, Any]] = deque(maxlen=history_limit)
        self._pending: List[Dict[str, Any]] = []
        self._rules: List[EventRule] = []
        self._lock = threading.RLock()

    def add_rule(
        self,
        detail_type: str,
        target: EventTarget,
        source: Optional[str] = None,
        name: Optional[str] = None,
    ) -> EventRule:
        """Register a routing rule."""
        rule = EventRule(
            name=name or f"{detail_type}-{len(self._rules)}",
            detail_type=detail_type,
            target=target,
            source=source,
        )
        with self._lock:
            self._rules.append(rule)
        return rule

    async def put_event(self, envelope: EventEnvelope) -> str:
        event = envelope.to_dict()
        with self._lock:
            self.published.append(event)
            self._pending.append(event)
        logger.debug(
            f"Event published: {envelope.detail_type.value}",
            source=envelope.source,
            event_id=envelope.id,
        )
        return envelope.id

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def events_of_type(self, detail_type: str) -> List[Dict[str, Any]]:
        """All published events with a detail-type."""
        with self._lock:
            return [e for e in self.published if e.get("detail-type") == detail_type]

    async def dispatch_pending(self) -> int:
        """
        Deliver queued events to matching rule targets.

        Returns:
            Number of events taken off the queue
        """
        with self._lock:
            batch, self._pending = self._pending, []

        for event in batch:
            rules = [r for r in self._rules if r.matches(event)]
            if not rules:
                logger.debug(f"No rule matched {event.get('detail-type')}", event_id=event.get("id"))
            for rule in rules:
                try:
                    await rule.target(event)
                except Exception as e:
                    logger.exception(
                        f"Rule target failed: {rule.name}",
                        event_id=event.get("id"),
                        error=str(e),
                    )
                    self.dead_letters.append({"rule": rule.name, "event": event, "error": str(e)})
        return len(batch)
