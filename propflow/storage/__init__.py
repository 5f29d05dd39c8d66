"""
Document stores for propflow.

Provides memory and DynamoDB implementations of the contract status,
search projection, contracts and execution stores.
"""

from propflow.storage.base import (
    ContractStatusStore,
    ContractStore,
    ExecutionStore,
    PropertyStore,
)
from propflow.storage.config import Stores, create_stores
from propflow.storage.memory import (
    InMemoryContractStatusStore,
    InMemoryContractStore,
    InMemoryExecutionStore,
    InMemoryPropertyStore,
)
from propflow.storage.schemas import (
    ContractRecord,
    ContractStatus,
    ContractStatusRecord,
    ExecutionStatus,
    HistoryEvent,
    PropertyRecord,
    PropertyStatus,
    WorkflowExecution,
)

__all__ = [
    "ContractStatusStore",
    "ContractStore",
    "ExecutionStore",
    "PropertyStore",
    "InMemoryContractStatusStore",
    "InMemoryContractStore",
    "InMemoryExecutionStore",
    "InMemoryPropertyStore",
    "ContractRecord",
    "ContractStatus",
    "ContractStatusRecord",
    "ExecutionStatus",
    "HistoryEvent",
    "PropertyRecord",
    "PropertyStatus",
    "WorkflowExecution",
    # Config utilities
    "Stores",
    "create_stores",
]
