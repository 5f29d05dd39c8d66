"""Tests for the in-memory stores."""

import pytest

from propflow.core.exceptions import ConditionalCheckFailedError
from propflow.engine.streams import deserialize_image
from propflow.storage.memory import (
    InMemoryContractStatusStore,
    InMemoryContractStore,
    InMemoryExecutionStore,
    InMemoryPropertyStore,
)
from propflow.storage.schemas import (
    ContractRecord,
    ContractStatusRecord,
    ExecutionStatus,
    PropertyRecord,
    WorkflowExecution,
)

PROPERTY_ID = "usa/anytown/main-street/111"


class TestInMemoryContractStatusStore:
    """Tests for versioned contract status writes."""

    @pytest.mark.asyncio
    async def test_get_missing(self):
        store = InMemoryContractStatusStore()
        assert await store.get_contract_status(PROPERTY_ID) is None

    @pytest.mark.asyncio
    async def test_put_increments_version(self):
        """Test each write bumps the version by one."""
        store = InMemoryContractStatusStore()

        first = await store.put_contract_status(
            ContractStatusRecord(PROPERTY_ID, contract_id="c-1", contract_status="DRAFT"),
            expected_version=0,
        )
        second = await store.put_contract_status(
            ContractStatusRecord(PROPERTY_ID, contract_id="c-1", contract_status="APPROVED"),
            expected_version=1,
        )

        assert first.version == 1
        assert second.version == 2
        stored = await store.get_contract_status(PROPERTY_ID)
        assert stored.contract_status == "APPROVED"

    @pytest.mark.asyncio
    async def test_stale_expected_version_rejected(self):
        """Test a write against an old version fails and leaves the record alone."""
        store = InMemoryContractStatusStore()
        await store.put_contract_status(ContractStatusRecord(PROPERTY_ID, contract_id="c-1"))

        with pytest.raises(ConditionalCheckFailedError):
            await store.put_contract_status(
                ContractStatusRecord(PROPERTY_ID, contract_id="c-2"), expected_version=0
            )
        assert (await store.get_contract_status(PROPERTY_ID)).contract_id == "c-1"

    @pytest.mark.asyncio
    async def test_unconditional_put(self):
        store = InMemoryContractStatusStore()
        await store.put_contract_status(ContractStatusRecord(PROPERTY_ID, contract_id="c-1"))
        record = await store.put_contract_status(ContractStatusRecord(PROPERTY_ID, contract_id="c-2"))
        assert record.contract_id == "c-2"

    @pytest.mark.asyncio
    async def test_writes_emit_stream_records(self):
        """Test INSERT then MODIFY records carry old and new images."""
        store = InMemoryContractStatusStore("StatusTable")
        await store.put_contract_status(ContractStatusRecord(PROPERTY_ID, contract_status="DRAFT"))
        await store.put_contract_status(ContractStatusRecord(PROPERTY_ID, contract_status="APPROVED"))

        records = store.read_stream()
        assert [r["eventName"] for r in records] == ["INSERT", "MODIFY"]
        assert records[0]["eventSourceARN"] == "arn:local:dynamodb:table/StatusTable/stream"
        assert deserialize_image(records[1]["dynamodb"]["OldImage"])["contract_status"] == "DRAFT"
        assert deserialize_image(records[1]["dynamodb"]["NewImage"])["contract_status"] == "APPROVED"
        assert store.read_stream() == []

    @pytest.mark.asyncio
    async def test_clear_task_token(self):
        """Test the token is removed only when it still matches."""
        store = InMemoryContractStatusStore()
        await store.put_contract_status(
            ContractStatusRecord(PROPERTY_ID, sfn_wait_approved_task_token="tok-1")
        )

        assert await store.clear_task_token(PROPERTY_ID, "tok-other") is False
        assert await store.clear_task_token(PROPERTY_ID, "tok-1") is True
        assert await store.clear_task_token(PROPERTY_ID, "tok-1") is False

        record = await store.get_contract_status(PROPERTY_ID)
        assert record.sfn_wait_approved_task_token is None
        assert record.version == 2

    @pytest.mark.asyncio
    async def test_list_sorted(self):
        store = InMemoryContractStatusStore()
        await store.put_contract_status(ContractStatusRecord("usa/b/s/1"))
        await store.put_contract_status(ContractStatusRecord("usa/a/s/1"))

        records = await store.list_contract_statuses()
        assert [r.property_id for r in records] == ["usa/a/s/1", "usa/b/s/1"]

    @pytest.mark.asyncio
    async def test_clear(self):
        store = InMemoryContractStatusStore()
        await store.put_contract_status(ContractStatusRecord(PROPERTY_ID))
        store.clear()

        assert await store.list_contract_statuses() == []
        assert store.stream_pending() == 0


class TestInMemoryPropertyStore:
    """Tests for the search projection store."""

    def row(self, street: str, number: str, status: str) -> PropertyRecord:
        return PropertyRecord(
            pk="PROPERTY#usa#anytown",
            sk=f"{street}#{number}",
            country="usa",
            city="anytown",
            street=street,
            number=number,
            status=status,
        )

    @pytest.mark.asyncio
    async def test_query_by_partition_sorted_by_sort_key(self):
        store = InMemoryPropertyStore()
        await store.put_property(self.row("main-street", "222", "APPROVED"))
        await store.put_property(self.row("elm-street", "1", "APPROVED"))
        await store.put_property(
            PropertyRecord(pk="PROPERTY#usa#othertown", sk="main-street#1", status="APPROVED")
        )

        rows = await store.query_properties("PROPERTY#usa#anytown")
        assert [r.sk for r in rows] == ["elm-street#1", "main-street#222"]

    @pytest.mark.asyncio
    async def test_query_prefix_and_status(self):
        store = InMemoryPropertyStore()
        await store.put_property(self.row("main-street", "111", "PENDING"))
        await store.put_property(self.row("main-street", "222", "APPROVED"))
        await store.put_property(self.row("elm-street", "1", "APPROVED"))

        rows = await store.query_properties(
            "PROPERTY#usa#anytown", sk_prefix="main-street", status="APPROVED"
        )
        assert [r.number for r in rows] == ["222"]

    @pytest.mark.asyncio
    async def test_update_status_keeps_other_attributes(self):
        store = InMemoryPropertyStore()
        row = self.row("main-street", "111", "PENDING")
        row.description = "Lovely"
        await store.put_property(row)

        await store.update_property_status(row.pk, row.sk, "APPROVED")

        stored = await store.get_property(row.pk, row.sk)
        assert stored.status == "APPROVED"
        assert stored.description == "Lovely"

    @pytest.mark.asyncio
    async def test_update_status_creates_key_only_row(self):
        """Test a status update on a missing key leaves a row with keys and status only."""
        store = InMemoryPropertyStore()
        await store.update_property_status("PROPERTY#usa#anytown", "main-street#999", "DECLINED")

        stored = await store.get_property("PROPERTY#usa#anytown", "main-street#999")
        assert stored.status == "DECLINED"
        assert stored.country == ""


class TestInMemoryContractStore:
    """Tests for conditional contract writes."""

    def contract(self, contract_id: str = "c-1") -> ContractRecord:
        return ContractRecord(
            property_id=PROPERTY_ID,
            contract_id=contract_id,
            contract_last_modified_on="2024-01-01T00:00:00+00:00",
        )

    @pytest.mark.asyncio
    async def test_create_and_approve(self):
        store = InMemoryContractStore()
        await store.create_contract(self.contract())

        approved = await store.approve_contract(PROPERTY_ID, "2024-01-02T00:00:00+00:00")

        assert approved.contract_status == "APPROVED"
        assert approved.contract_last_modified_on == "2024-01-02T00:00:00+00:00"
        assert [r["eventName"] for r in store.read_stream()] == ["INSERT", "MODIFY"]

    @pytest.mark.asyncio
    async def test_create_rejects_active_contract(self):
        store = InMemoryContractStore()
        await store.create_contract(self.contract())

        with pytest.raises(ConditionalCheckFailedError):
            await store.create_contract(self.contract("c-2"))

    @pytest.mark.asyncio
    async def test_create_replaces_cancelled_contract(self):
        store = InMemoryContractStore()
        cancelled = self.contract()
        cancelled.contract_status = "CANCELLED"
        await store.create_contract(cancelled)

        await store.create_contract(self.contract("c-2"))
        assert (await store.get_contract(PROPERTY_ID)).contract_id == "c-2"

    @pytest.mark.asyncio
    async def test_approve_requires_draft(self):
        store = InMemoryContractStore()
        with pytest.raises(ConditionalCheckFailedError):
            await store.approve_contract(PROPERTY_ID, "2024-01-02T00:00:00+00:00")

        await store.create_contract(self.contract())
        await store.approve_contract(PROPERTY_ID, "2024-01-02T00:00:00+00:00")
        with pytest.raises(ConditionalCheckFailedError):
            await store.approve_contract(PROPERTY_ID, "2024-01-03T00:00:00+00:00")


class TestInMemoryExecutionStore:
    """Tests for local workflow execution storage."""

    @pytest.mark.asyncio
    async def test_token_index_follows_updates(self):
        """Test an execution is found by its token only while it holds it."""
        store = InMemoryExecutionStore()
        execution = WorkflowExecution(execution_id="exec_1", property_id=PROPERTY_ID)
        await store.create_execution(execution)

        execution.task_token = "tok-1"
        execution.status = ExecutionStatus.WAITING
        await store.update_execution(execution)
        assert (await store.get_execution_by_token("tok-1")).execution_id == "exec_1"

        execution.task_token = None
        await store.update_execution(execution)
        assert await store.get_execution_by_token("tok-1") is None

    @pytest.mark.asyncio
    async def test_duplicate_create(self):
        store = InMemoryExecutionStore()
        await store.create_execution(WorkflowExecution(execution_id="exec_1", property_id=PROPERTY_ID))
        with pytest.raises(ValueError):
            await store.create_execution(
                WorkflowExecution(execution_id="exec_1", property_id=PROPERTY_ID)
            )

    @pytest.mark.asyncio
    async def test_returned_copies_are_detached(self):
        store = InMemoryExecutionStore()
        await store.create_execution(WorkflowExecution(execution_id="exec_1", property_id=PROPERTY_ID))

        fetched = await store.get_execution("exec_1")
        fetched.status = ExecutionStatus.FAILED

        assert (await store.get_execution("exec_1")).status == ExecutionStatus.RUNNING

    @pytest.mark.asyncio
    async def test_list_filters(self):
        store = InMemoryExecutionStore()
        await store.create_execution(WorkflowExecution(execution_id="exec_1", property_id="a/b/c/1"))
        await store.create_execution(
            WorkflowExecution(
                execution_id="exec_2", property_id="a/b/c/2", status=ExecutionStatus.WAITING
            )
        )

        waiting = await store.list_executions(status=ExecutionStatus.WAITING)
        assert [e.execution_id for e in waiting] == ["exec_2"]
        by_property = await store.list_executions(property_id="a/b/c/1")
        assert [e.execution_id for e in by_property] == ["exec_1"]

    @pytest.mark.asyncio
    async def test_oldest_finished_executions_evicted(self):
        store = InMemoryExecutionStore(max_completed=2)
        waiting = WorkflowExecution(
            execution_id="exec_wait",
            property_id=PROPERTY_ID,
            status=ExecutionStatus.WAITING,
            task_token="tok-1",
        )
        await store.create_execution(waiting)
        for n in range(3):
            await store.create_execution(
                WorkflowExecution(
                    execution_id=f"exec_{n}",
                    property_id=PROPERTY_ID,
                    status=ExecutionStatus.SUCCEEDED,
                )
            )

        assert await store.get_execution("exec_0") is None
        assert await store.get_execution("exec_2") is not None
        assert (await store.get_execution_by_token("tok-1")).execution_id == "exec_wait"
        assert len(await store.list_executions()) == 3
