"""Tests for the local approval workflow."""

from unittest.mock import AsyncMock

import pytest

from propflow.core.exceptions import EventValidationError, TaskTokenError
from propflow.engine.events import (
    create_contract_status_changed_event,
    create_publication_approval_requested_event,
)
from propflow.services.moderation import ModerationError
from propflow.storage.schemas import ExecutionStatus
from propflow.workflow.approval import (
    APPROVED,
    DECLINED,
    NOT_FOUND,
    TASK_FAILED,
    WAIT_FOR_CONTRACT_APPROVAL,
)

PROPERTY_ID = "usa/anytown/main-street/111"
ADDRESS = {"country": "usa", "city": "anytown", "street": "main-street", "number": "111"}


def approval_requested(description: str = "Lovely sunny home", images=("property_images/a.jpg",)):
    return create_publication_approval_requested_event(
        source="propflow.web",
        property_id=PROPERTY_ID,
        address=ADDRESS,
        description=description,
        images=list(images),
    ).to_dict()


async def record_contract(runtime, status: str = "DRAFT") -> None:
    detail = create_contract_status_changed_event(
        "propflow.contracts", "c-1", PROPERTY_ID, status, "2024-01-01T00:00:00+00:00"
    ).detail
    await runtime.services.contract_status.record_status_change(detail)


def evaluation_results(runtime) -> list[str]:
    return [
        e["detail"]["evaluation_result"]
        for e in runtime.bus.events_of_type("PublicationEvaluationCompleted")
    ]


class TestStartExecution:
    """Tests for running an execution up to its wait or end state."""

    @pytest.mark.asyncio
    async def test_no_contract_ends_in_not_found(self, runtime):
        execution = await runtime.state_machine.start_execution(approval_requested())

        assert execution.status == ExecutionStatus.FAILED
        assert execution.current_state == NOT_FOUND
        assert execution.error == "ContractStatusNotFound"
        assert evaluation_results(runtime) == []

    @pytest.mark.asyncio
    async def test_negative_description_declined(self, runtime):
        await record_contract(runtime)

        execution = await runtime.state_machine.start_execution(
            approval_requested("Terrible place, total scam")
        )

        assert execution.status == ExecutionStatus.SUCCEEDED
        assert execution.current_state == DECLINED
        assert execution.output == {"property_id": PROPERTY_ID, "evaluation_result": "DECLINED"}
        assert evaluation_results(runtime) == ["DECLINED"]

    @pytest.mark.asyncio
    async def test_flagged_image_declined(self, runtime):
        await record_contract(runtime)

        execution = await runtime.state_machine.start_execution(
            approval_requested(images=["property_images/a.jpg", "property_images/flagged.jpg"])
        )

        assert execution.current_state == DECLINED
        assert evaluation_results(runtime) == ["DECLINED"]

    @pytest.mark.asyncio
    async def test_safe_content_waits_for_contract_approval(self, runtime):
        """Test a passing listing parks with its token stored on the contract status."""
        await record_contract(runtime)

        execution = await runtime.state_machine.start_execution(approval_requested())

        assert execution.status == ExecutionStatus.WAITING
        assert execution.current_state == WAIT_FOR_CONTRACT_APPROVAL
        assert execution.task_token
        record = await runtime.services.stores.contract_statuses.get_contract_status(PROPERTY_ID)
        assert record.sfn_wait_approved_task_token == execution.task_token
        assert evaluation_results(runtime) == []

    @pytest.mark.asyncio
    async def test_history_records_states_in_order(self, runtime):
        await record_contract(runtime)

        execution = await runtime.state_machine.start_execution(approval_requested())

        entered = [h.name for h in execution.history if h.type.endswith("StateEntered")]
        assert entered == [
            "VerifyContractExists",
            "CheckDescriptionSentiment",
            "CheckImageModeration",
            "ValidateContentIntegrity",
            "IsContentSafe",
            "WaitForContractApproval",
        ]

    @pytest.mark.asyncio
    async def test_moderation_failure_fails_execution(self, runtime):
        await record_contract(runtime)
        runtime.moderation.detect_sentiment = AsyncMock(side_effect=ModerationError("throttled"))

        execution = await runtime.state_machine.start_execution(approval_requested())

        assert execution.status == ExecutionStatus.FAILED
        assert execution.error == TASK_FAILED
        assert execution.cause == "throttled"

    @pytest.mark.asyncio
    async def test_rejects_other_events(self, runtime):
        event = create_contract_status_changed_event(
            "propflow.contracts", "c-1", PROPERTY_ID, "DRAFT", "2024-01-01T00:00:00+00:00"
        ).to_dict()

        with pytest.raises(EventValidationError):
            await runtime.state_machine.start_execution(event)


class TestTaskTokens:
    """Tests for resuming and failing waiting executions."""

    @pytest.mark.asyncio
    async def test_success_publishes_approval(self, runtime):
        await record_contract(runtime, "APPROVED")
        machine = runtime.state_machine
        waiting = await machine.start_execution(approval_requested())

        await machine.send_task_success(waiting.task_token, {"ContractPublished": True})

        execution = await machine.get_execution(waiting.execution_id)
        assert execution.status == ExecutionStatus.SUCCEEDED
        assert execution.current_state == APPROVED
        assert execution.task_token is None
        assert evaluation_results(runtime) == ["APPROVED"]

    @pytest.mark.asyncio
    async def test_token_consumed_once(self, runtime):
        await record_contract(runtime)
        machine = runtime.state_machine
        waiting = await machine.start_execution(approval_requested())
        await machine.send_task_success(waiting.task_token, {"ContractPublished": True})

        with pytest.raises(TaskTokenError):
            await machine.send_task_success(waiting.task_token, {"ContractPublished": True})

    @pytest.mark.asyncio
    async def test_unknown_token(self, runtime):
        with pytest.raises(TaskTokenError):
            await runtime.state_machine.send_task_failure("nope", "Error")

    @pytest.mark.asyncio
    async def test_failure(self, runtime):
        await record_contract(runtime)
        machine = runtime.state_machine
        waiting = await machine.start_execution(approval_requested())

        await machine.send_task_failure(waiting.task_token, "ContractCancelled", "seller withdrew")

        execution = await machine.get_execution(waiting.execution_id)
        assert execution.status == ExecutionStatus.FAILED
        assert execution.error == "ContractCancelled"
        assert execution.cause == "seller withdrew"

    @pytest.mark.asyncio
    async def test_list_executions(self, runtime):
        await record_contract(runtime)
        await runtime.state_machine.start_execution(approval_requested())

        waiting = await runtime.state_machine.list_executions(status=ExecutionStatus.WAITING)
        assert [e.property_id for e in waiting] == [PROPERTY_ID]
