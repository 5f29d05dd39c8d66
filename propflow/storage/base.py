"""
Abstract base classes for the document stores.

Each bounded context owns one store. Implementations exist for memory
(tests and the local runtime) and DynamoDB (deployed handlers).

All methods are async to support both sync and async backends.
"""

from abc import ABC, abstractmethod

from propflow.storage.schemas import (
    ContractRecord,
    ContractStatusRecord,
    ExecutionStatus,
    PropertyRecord,
    WorkflowExecution,
)


class ContractStatusStore(ABC):
    """
    Contract status records of the properties context, keyed by property_id.

    Writes are conditional on ``version`` so concurrent writers cannot lose
    each other's fields.
    """

    @abstractmethod
    async def get_contract_status(self, property_id: str) -> ContractStatusRecord | None:
        """
        Retrieve the contract status record of a property.

        Args:
            property_id: Property identifier

        Returns:
            ContractStatusRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def put_contract_status(
        self,
        record: ContractStatusRecord,
        expected_version: int | None = None,
    ) -> ContractStatusRecord:
        """
        Write a contract status record.

        Args:
            record: Record to store; its ``version`` is ignored
            expected_version: If given, the stored version must equal it.
                0 means the record must not exist yet.

        Returns:
            The stored record with its new version

        Raises:
            ConditionalCheckFailedError: If ``expected_version`` does not match
            StorageError: On any other store failure
        """
        pass

    @abstractmethod
    async def clear_task_token(self, property_id: str, token: str) -> bool:
        """
        Remove the pending resumption token if it still equals ``token``.

        Args:
            property_id: Property identifier
            token: Token that was consumed

        Returns:
            True if the token was removed, False if another token (or none)
            is stored
        """
        pass

    @abstractmethod
    async def list_contract_statuses(self) -> list[ContractStatusRecord]:
        """List all contract status records."""
        pass


class PropertyStore(ABC):
    """Search projection rows of the web context, keyed by (PK, SK)."""

    @abstractmethod
    async def get_property(self, pk: str, sk: str) -> PropertyRecord | None:
        """
        Retrieve a single projection row.

        Returns:
            PropertyRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def put_property(self, record: PropertyRecord) -> None:
        """Create or replace a projection row."""
        pass

    @abstractmethod
    async def query_properties(
        self, pk: str, sk_prefix: str | None = None, status: str | None = None
    ) -> list[PropertyRecord]:
        """
        Query rows of a partition.

        Args:
            pk: Partition key
            sk_prefix: Optional sort key prefix
            status: Only return rows with this status

        Returns:
            Matching rows in sort key order
        """
        pass

    @abstractmethod
    async def update_property_status(self, pk: str, sk: str, status: str) -> None:
        """
        Set the ``status`` attribute of a row, leaving all other attributes.

        A row that does not exist is created with only its keys and status.
        """
        pass


class ContractStore(ABC):
    """Contracts of the contracts context, keyed by property_id."""

    @abstractmethod
    async def get_contract(self, property_id: str) -> ContractRecord | None:
        pass

    @abstractmethod
    async def create_contract(self, record: ContractRecord) -> None:
        """
        Create a contract.

        Succeeds when no contract exists for the property or the existing
        one is CANCELLED, CLOSED or EXPIRED.

        Raises:
            ConditionalCheckFailedError: If an active contract exists
        """
        pass

    @abstractmethod
    async def approve_contract(self, property_id: str, modified_on: str) -> ContractRecord:
        """
        Move a DRAFT contract to APPROVED.

        Returns:
            The updated contract

        Raises:
            ConditionalCheckFailedError: If there is no DRAFT contract
        """
        pass


class ExecutionStore(ABC):
    """Executions of the local approval state machine."""

    @abstractmethod
    async def create_execution(self, execution: WorkflowExecution) -> None:
        """
        Persist a new execution.

        Raises:
            ValueError: If the execution id already exists
        """
        pass

    @abstractmethod
    async def get_execution(self, execution_id: str) -> WorkflowExecution | None:
        pass

    @abstractmethod
    async def get_execution_by_token(self, task_token: str) -> WorkflowExecution | None:
        """Find the execution waiting on a task token."""
        pass

    @abstractmethod
    async def update_execution(self, execution: WorkflowExecution) -> None:
        pass

    @abstractmethod
    async def list_executions(
        self,
        status: ExecutionStatus | None = None,
        property_id: str | None = None,
    ) -> list[WorkflowExecution]:
        """
        List executions, newest first.

        Args:
            status: Filter by status
            property_id: Filter by property
        """
        pass
