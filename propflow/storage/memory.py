"""
In-memory stores for testing and the local runtime.

Items are kept as plain dicts, exactly as DynamoDB would hold them, and are
deep-copied on the way in and out. The contract status and contracts stores
emit a DynamoDB Streams-shaped record per successful write; read_stream()
drains them.

Note: All data is lost when the process exits.
"""

import copy
import threading
from collections import deque
from typing import Any

from propflow.core.exceptions import ConditionalCheckFailedError
from propflow.engine.streams import make_stream_record
from propflow.storage.base import (
    ContractStatusStore,
    ContractStore,
    ExecutionStore,
    PropertyStore,
)
from propflow.storage.schemas import (
    REPLACEABLE_CONTRACT_STATUSES,
    ContractRecord,
    ContractStatus,
    ContractStatusRecord,
    ExecutionStatus,
    PropertyRecord,
    WorkflowExecution,
)


class _ChangeStream:
    """Buffer of pending stream records for one table."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        self._records: list[dict[str, Any]] = []
        self._stream_lock = threading.RLock()

    def _emit(
        self,
        keys: dict[str, Any],
        old_image: dict[str, Any] | None,
        new_image: dict[str, Any] | None,
    ) -> None:
        record = make_stream_record(
            keys,
            old_image,
            new_image,
            event_source_arn=f"arn:local:dynamodb:table/{self.table_name}/stream",
        )
        with self._stream_lock:
            self._records.append(record)

    def read_stream(self) -> list[dict[str, Any]]:
        """Return and forget the records emitted since the last read."""
        with self._stream_lock:
            records, self._records = self._records, []
        return records

    def stream_pending(self) -> int:
        with self._stream_lock:
            return len(self._records)


class InMemoryContractStatusStore(ContractStatusStore, _ChangeStream):
    """
    Thread-safe in-memory contract status store.

    Example:
        >>> store = InMemoryContractStatusStore()
        >>> await store.put_contract_status(ContractStatusRecord("usa/anytown/main-street/111"))
    """

    def __init__(self, table_name: str = "ContractStatusTable") -> None:
        _ChangeStream.__init__(self, table_name)
        self._items: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    async def get_contract_status(self, property_id: str) -> ContractStatusRecord | None:
        with self._lock:
            item = self._items.get(property_id)
            return ContractStatusRecord.from_dict(copy.deepcopy(item)) if item else None

    async def put_contract_status(
        self,
        record: ContractStatusRecord,
        expected_version: int | None = None,
    ) -> ContractStatusRecord:
        with self._lock:
            old = self._items.get(record.property_id)
            current_version = old["version"] if old else 0
            if expected_version is not None and expected_version != current_version:
                raise ConditionalCheckFailedError(
                    f"Contract status of {record.property_id} is at version "
                    f"{current_version}, expected {expected_version}",
                    property_id=record.property_id,
                )
            new = record.to_dict()
            new["version"] = current_version + 1
            self._items[record.property_id] = new
            self._emit({"property_id": record.property_id}, copy.deepcopy(old), copy.deepcopy(new))
            return ContractStatusRecord.from_dict(copy.deepcopy(new))

    async def clear_task_token(self, property_id: str, token: str) -> bool:
        with self._lock:
            old = self._items.get(property_id)
            if not old or old.get("sfn_wait_approved_task_token") != token:
                return False
            new = copy.deepcopy(old)
            del new["sfn_wait_approved_task_token"]
            new["version"] = old["version"] + 1
            self._items[property_id] = new
            self._emit({"property_id": property_id}, copy.deepcopy(old), copy.deepcopy(new))
            return True

    async def list_contract_statuses(self) -> list[ContractStatusRecord]:
        with self._lock:
            return [
                ContractStatusRecord.from_dict(copy.deepcopy(item))
                for _, item in sorted(self._items.items())
            ]

    def clear(self) -> None:
        """Clear all data (useful for testing)."""
        with self._lock:
            self._items.clear()
            self.read_stream()


class InMemoryPropertyStore(PropertyStore):
    """Thread-safe in-memory search projection."""

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], dict[str, Any]] = {}
        self._lock = threading.RLock()

    async def get_property(self, pk: str, sk: str) -> PropertyRecord | None:
        with self._lock:
            item = self._items.get((pk, sk))
            return PropertyRecord.from_dict(copy.deepcopy(item)) if item else None

    async def put_property(self, record: PropertyRecord) -> None:
        with self._lock:
            self._items[(record.pk, record.sk)] = record.to_dict()

    async def query_properties(
        self, pk: str, sk_prefix: str | None = None, status: str | None = None
    ) -> list[PropertyRecord]:
        with self._lock:
            matches = [
                item
                for (item_pk, item_sk), item in self._items.items()
                if item_pk == pk
                and (sk_prefix is None or item_sk.startswith(sk_prefix))
                and (status is None or item.get("status") == status)
            ]
            matches.sort(key=lambda item: item["SK"])
            return [PropertyRecord.from_dict(copy.deepcopy(item)) for item in matches]

    async def update_property_status(self, pk: str, sk: str, status: str) -> None:
        with self._lock:
            item = self._items.setdefault((pk, sk), {"PK": pk, "SK": sk})
            item["status"] = status

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class InMemoryContractStore(ContractStore, _ChangeStream):
    """Thread-safe in-memory contracts table."""

    def __init__(self, table_name: str = "ContractsTable") -> None:
        _ChangeStream.__init__(self, table_name)
        self._items: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    async def get_contract(self, property_id: str) -> ContractRecord | None:
        with self._lock:
            item = self._items.get(property_id)
            return ContractRecord.from_dict(copy.deepcopy(item)) if item else None

    async def create_contract(self, record: ContractRecord) -> None:
        replaceable = {status.value for status in REPLACEABLE_CONTRACT_STATUSES}
        with self._lock:
            old = self._items.get(record.property_id)
            if old is not None and old.get("contract_status") not in replaceable:
                raise ConditionalCheckFailedError(
                    f"Contract already exists for {record.property_id}",
                    property_id=record.property_id,
                )
            new = record.to_dict()
            self._items[record.property_id] = new
            self._emit({"property_id": record.property_id}, copy.deepcopy(old), copy.deepcopy(new))

    async def approve_contract(self, property_id: str, modified_on: str) -> ContractRecord:
        with self._lock:
            old = self._items.get(property_id)
            if old is None or old.get("contract_status") != ContractStatus.DRAFT.value:
                raise ConditionalCheckFailedError(
                    f"No draft contract for {property_id}", property_id=property_id
                )
            new = copy.deepcopy(old)
            new["contract_status"] = ContractStatus.APPROVED.value
            new["contract_last_modified_on"] = modified_on
            self._items[property_id] = new
            self._emit({"property_id": property_id}, copy.deepcopy(old), copy.deepcopy(new))
            return ContractRecord.from_dict(copy.deepcopy(new))


class InMemoryExecutionStore(ExecutionStore):
    """
    Thread-safe in-memory execution store.

    Only the newest ``max_completed`` finished executions are kept; running
    and waiting executions are never evicted.
    """

    def __init__(self, max_completed: int = 1000) -> None:
        self.max_completed = max_completed
        self._executions: dict[str, WorkflowExecution] = {}
        self._token_index: dict[str, str] = {}  # token -> execution_id
        self._completed: deque[str] = deque()
        self._lock = threading.RLock()

    async def create_execution(self, execution: WorkflowExecution) -> None:
        with self._lock:
            if execution.execution_id in self._executions:
                raise ValueError(f"Execution {execution.execution_id} already exists")
            self._store(execution)

    async def get_execution(self, execution_id: str) -> WorkflowExecution | None:
        with self._lock:
            execution = self._executions.get(execution_id)
            return copy.deepcopy(execution) if execution else None

    async def get_execution_by_token(self, task_token: str) -> WorkflowExecution | None:
        with self._lock:
            execution_id = self._token_index.get(task_token)
            if execution_id:
                return copy.deepcopy(self._executions[execution_id])
            return None

    async def update_execution(self, execution: WorkflowExecution) -> None:
        with self._lock:
            previous = self._executions.get(execution.execution_id)
            if previous and previous.task_token and previous.task_token != execution.task_token:
                self._token_index.pop(previous.task_token, None)
            self._store(execution)

    async def list_executions(
        self,
        status: ExecutionStatus | None = None,
        property_id: str | None = None,
    ) -> list[WorkflowExecution]:
        with self._lock:
            executions = list(self._executions.values())

        if status is not None:
            executions = [e for e in executions if e.status == status]
        if property_id is not None:
            executions = [e for e in executions if e.property_id == property_id]

        executions.sort(key=lambda e: e.created_at, reverse=True)
        return [copy.deepcopy(e) for e in executions]

    def _store(self, execution: WorkflowExecution) -> None:
        self._executions[execution.execution_id] = copy.deepcopy(execution)
        if execution.task_token:
            self._token_index[execution.task_token] = execution.execution_id
        if execution.is_terminal and execution.execution_id not in self._completed:
            self._completed.append(execution.execution_id)
            while len(self._completed) > self.max_completed:
                self._evict(self._completed.popleft())

    def _evict(self, execution_id: str) -> None:
        evicted = self._executions.pop(execution_id, None)
        if evicted and evicted.task_token:
            self._token_index.pop(evicted.task_token, None)
