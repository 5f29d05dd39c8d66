"""
Local runtime - runs the whole choreography in-process.

The local runtime is ideal for:
- Tests
- Local development and the CLI
- Running the HTTP API without AWS

It wires in-memory stores, bus, queues and the local approval state
machine exactly as the deployed stacks wire their AWS counterparts:

    bus rules
      ContractStatusChanged (contracts)         -> status change ingest
      PublicationApprovalRequested (web)        -> ApprovalStateMachine
      PublicationEvaluationCompleted (properties) -> projection updater
    change streams
      contract status table -> approvals sync
      contracts table       -> ContractStatusChanged publisher
    queues
      approvals -> approval-request publisher
      contracts -> contract commands

Nothing is delivered until drain() is awaited, so handlers never re-enter
each other.
"""

import dataclasses
from typing import Any, Awaitable, Callable

from loguru import logger

from propflow.config import PropFlowConfig, get_config
from propflow.engine.bus import InMemoryEventBus
from propflow.engine.events import EventType
from propflow.engine.queue import InMemoryQueue
from propflow.properties.contract_status import ContractStatusService
from propflow.runtime.services import Services
from propflow.services.moderation import KeywordModerationService, ModerationService
from propflow.storage.config import create_stores
from propflow.workflow.approval import ApprovalStateMachine

StreamConsumer = Callable[[dict[str, Any]], Awaitable[Any]]


class LocalRuntime:
    """
    Execute the full event-driven system in the current process.

    Example:
        >>> runtime = LocalRuntime()
        >>> await runtime.services.contracts_queue.send_message(
        ...     {"property_id": "usa/anytown/main-street/111"}, {"HttpMethod": "POST"}
        ... )
        >>> await runtime.drain()
    """

    def __init__(
        self,
        config: PropFlowConfig | None = None,
        moderation: ModerationService | None = None,
    ) -> None:
        config = config or get_config()
        if config.backend != "memory":
            config = dataclasses.replace(config, backend="memory")
        self.config = config

        stores = create_stores(config)
        self.bus = InMemoryEventBus(config.event_bus_name, history_limit=config.local_history_limit)
        self.approvals_queue = InMemoryQueue("approvals", config.max_receive_count)
        self.contracts_queue = InMemoryQueue("contracts", config.max_receive_count)
        self.moderation = moderation or KeywordModerationService()

        self.state_machine = ApprovalStateMachine(
            executions=stores.executions,
            contract_statuses=ContractStatusService(
                stores.contract_statuses, max_write_attempts=config.max_write_attempts
            ),
            moderation=self.moderation,
            bus=self.bus,
            source=config.properties_source,
        )

        self.services = Services(
            config=config,
            stores=stores,
            bus=self.bus,
            tokens=self.state_machine,
            moderation=self.moderation,
            approvals_queue=self.approvals_queue,
            contracts_queue=self.contracts_queue,
            runtime=self,
        )
        self.stream_failures: list[dict[str, Any]] = []
        self._stream_consumers: list[tuple[Any, StreamConsumer]] = []
        self._wire()

    @property
    def name(self) -> str:
        return "local"

    def _wire(self) -> None:
        from propflow.handlers.contract_events import (
            ContractCommandHandler,
            ContractStreamPublisherHandler,
        )
        from propflow.handlers.contract_status_changed import ContractStatusChangedHandler
        from propflow.handlers.properties_approval_sync import PropertiesApprovalSyncHandler
        from propflow.handlers.publication_evaluation_completed import (
            PublicationEvaluationCompletedHandler,
        )
        from propflow.handlers.request_approval import RequestApprovalHandler

        config = self.config
        services = self.services

        self.bus.add_rule(
            EventType.CONTRACT_STATUS_CHANGED.value,
            ContractStatusChangedHandler(services).invoke,
            source=config.contracts_source,
            name="contract_status_changed",
        )
        self.bus.add_rule(
            EventType.PUBLICATION_APPROVAL_REQUESTED.value,
            self.state_machine.start_execution,
            source=config.web_source,
            name="approval_state_machine",
        )
        self.bus.add_rule(
            EventType.PUBLICATION_EVALUATION_COMPLETED.value,
            PublicationEvaluationCompletedHandler(services).invoke,
            source=config.properties_source,
            name="publication_evaluation_completed",
        )

        self.approvals_queue.set_consumer(RequestApprovalHandler(services).invoke)
        self.contracts_queue.set_consumer(ContractCommandHandler(services).invoke)

        self._stream_consumers = [
            (services.stores.contract_statuses, PropertiesApprovalSyncHandler(services).invoke),
            (services.stores.contracts, ContractStreamPublisherHandler(services).invoke),
        ]

    async def _deliver_streams(self) -> int:
        delivered = 0
        for store, consumer in self._stream_consumers:
            records = store.read_stream()
            if not records:
                continue
            delivered += len(records)
            result = await consumer({"Records": records})
            failures = (result or {}).get("batchItemFailures") or []
            if failures:
                logger.warning(
                    f"Stream consumer reported {len(failures)} failed record(s)",
                    table=store.table_name,
                )
                self.stream_failures.extend(failures)
        return delivered

    async def drain(self, max_rounds: int = 100) -> int:
        """
        Deliver queued messages, stream records and bus events until
        nothing is left.

        Returns:
            Number of rounds that made progress

        Raises:
            RuntimeError: If the system does not settle within ``max_rounds``
        """
        for rounds in range(max_rounds):
            progressed = 0
            progressed += await self.approvals_queue.deliver_pending()
            progressed += await self.contracts_queue.deliver_pending()
            progressed += await self._deliver_streams()
            progressed += await self.bus.dispatch_pending()
            if not progressed:
                return rounds
        raise RuntimeError(f"Local runtime did not settle after {max_rounds} rounds")

    async def request_approval(self, property_id: str) -> None:
        """Enqueue an approval request and process it to completion."""
        await self.approvals_queue.send_message({"property_id": property_id})
        await self.drain()

    async def submit_contract(self, method: str, payload: dict[str, Any]) -> None:
        """Enqueue a contract command (POST create, PUT approve) and process it."""
        await self.contracts_queue.send_message(payload, {"HttpMethod": method})
        await self.drain()
