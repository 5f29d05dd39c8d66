"""
Store construction from configuration.

create_stores() builds the document stores for the configured backend:
``memory`` for tests and the local runtime, ``aws`` for DynamoDB.
"""

from dataclasses import dataclass
from typing import Any

from propflow.config import PropFlowConfig
from propflow.storage.base import (
    ContractStatusStore,
    ContractStore,
    ExecutionStore,
    PropertyStore,
)


@dataclass
class Stores:
    """The document stores of all bounded contexts."""

    contract_statuses: ContractStatusStore
    properties: PropertyStore
    contracts: ContractStore
    executions: ExecutionStore | None = None


def create_stores(config: PropFlowConfig, client: Any = None) -> Stores:
    """
    Create the stores for a configuration.

    Args:
        config: Configuration selecting the backend and table names
        client: Optional boto3 DynamoDB client shared by the aws stores

    Returns:
        Stores for the configured backend

    Raises:
        ValueError: If the backend is unknown

    Example:
        >>> stores = create_stores(PropFlowConfig(backend="memory"))
        >>> isinstance(stores.properties, InMemoryPropertyStore)
        True
    """
    backend = config.backend

    if backend == "memory":
        from propflow.storage.memory import (
            InMemoryContractStatusStore,
            InMemoryContractStore,
            InMemoryExecutionStore,
            InMemoryPropertyStore,
        )

        return Stores(
            contract_statuses=InMemoryContractStatusStore(config.contract_status_table),
            properties=InMemoryPropertyStore(),
            contracts=InMemoryContractStore(config.contracts_table),
            executions=InMemoryExecutionStore(max_completed=config.local_history_limit),
        )

    elif backend == "aws":
        from propflow.storage.dynamodb import (
            DynamoDBContractStatusStore,
            DynamoDBContractStore,
            DynamoDBPropertyStore,
        )

        region = config.aws_region
        return Stores(
            contract_statuses=DynamoDBContractStatusStore(
                config.contract_status_table, client=client, region=region
            ),
            properties=DynamoDBPropertyStore(config.properties_table, client=client, region=region),
            contracts=DynamoDBContractStore(config.contracts_table, client=client, region=region),
        )

    else:
        raise ValueError(f"Unknown storage backend: {backend}")
