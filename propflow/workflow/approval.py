"""
Local publication approval workflow.

ApprovalStateMachine runs the same states as the deployed Step Functions
definition, in-process, against the domain services:

    VerifyContractExists
      -> NotFound (fail) when no contract is recorded
    CheckDescriptionSentiment
    CheckImageModeration
    ValidateContentIntegrity
    IsContentSafe
      FAIL -> PublicationDeclined -> Declined (succeed)
      PASS -> WaitForContractApproval (task token)
                -> PublicationApproved -> Approved (succeed)

An execution that reaches WaitForContractApproval is persisted as WAITING
with its task token and stays there until send_task_success() or
send_task_failure() is called with that token.
"""

import uuid
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, Iterator

from loguru import logger

from propflow.core.exceptions import ContractStatusNotFoundError, TaskTokenError
from propflow.core.integrity import ValidationResult, evaluate_content_integrity
from propflow.engine.bus import EventBus
from propflow.engine.events import (
    EvaluationResult,
    EventType,
    PublicationApprovalRequested,
    create_publication_evaluation_completed_event,
    parse_event,
)
from propflow.observability.logging import execution_logging_context
from propflow.observability.tracing import add_span_event, trace_execution, trace_state
from propflow.properties.contract_status import ContractStatusService
from propflow.services.moderation import ModerationService
from propflow.services.tokens import TaskTokenService
from propflow.storage.base import ExecutionStore
from propflow.storage.schemas import ExecutionStatus, WorkflowExecution

STATE_MACHINE_NAME = "ApprovalStateMachine"

VERIFY_CONTRACT_EXISTS = "VerifyContractExists"
CHECK_DESCRIPTION_SENTIMENT = "CheckDescriptionSentiment"
CHECK_IMAGE_MODERATION = "CheckImageModeration"
VALIDATE_CONTENT_INTEGRITY = "ValidateContentIntegrity"
IS_CONTENT_SAFE = "IsContentSafe"
PUBLICATION_DECLINED = "PublicationDeclined"
WAIT_FOR_CONTRACT_APPROVAL = "WaitForContractApproval"
PUBLICATION_APPROVED = "PublicationApproved"
NOT_FOUND = "NotFound"
DECLINED = "Declined"
APPROVED = "Approved"

TASK_FAILED = "States.TaskFailed"


class ApprovalStateMachine(TaskTokenService):
    """
    In-process approval workflow with callback tokens.

    Example:
        >>> machine = ApprovalStateMachine(executions, contract_statuses, moderation, bus, source)
        >>> execution = await machine.start_execution(event)
        >>> execution.status
        <ExecutionStatus.WAITING: 'WAITING'>
        >>> await machine.send_task_success(execution.task_token, {"ContractPublished": True})
    """

    def __init__(
        self,
        executions: ExecutionStore,
        contract_statuses: ContractStatusService,
        moderation: ModerationService,
        bus: EventBus,
        source: str,
    ) -> None:
        self.executions = executions
        self.contract_statuses = contract_statuses
        self.moderation = moderation
        self.bus = bus
        self.source = source

    async def start_execution(self, event: dict[str, Any]) -> WorkflowExecution:
        """
        Start an execution for a PublicationApprovalRequested event.

        Runs until the execution waits for contract approval or ends.

        Raises:
            EventValidationError: If the event is not a valid
                PublicationApprovalRequested event
        """
        envelope = parse_event(event, expected=EventType.PUBLICATION_APPROVAL_REQUESTED)
        detail: PublicationApprovalRequested = envelope.detail

        execution = WorkflowExecution(
            execution_id=f"exec_{uuid.uuid4().hex[:16]}",
            property_id=detail.property_id,
            input=detail.model_dump(mode="json"),
        )
        execution.record("ExecutionStarted", STATE_MACHINE_NAME)
        await self.executions.create_execution(execution)

        with execution_logging_context(execution.execution_id, detail.property_id), trace_execution(
            execution.execution_id, detail.property_id, STATE_MACHINE_NAME
        ):
            logger.info("Approval workflow started")
            return await self._evaluate(execution, detail)

    @contextmanager
    def _state(
        self,
        execution: WorkflowExecution,
        state: str,
        event_type: str = "TaskStateEntered",
        **details: Any,
    ) -> Iterator[None]:
        """Enter a state: record it in the history and trace the work done in it."""
        execution.record(event_type, state, **details)
        with trace_state(execution.execution_id, state, **details):
            yield

    async def _evaluate(
        self, execution: WorkflowExecution, detail: PublicationApprovalRequested
    ) -> WorkflowExecution:
        with self._state(execution, VERIFY_CONTRACT_EXISTS):
            try:
                await self.contract_statuses.check_contract_exists(detail.property_id)
            except ContractStatusNotFoundError as e:
                return await self._fail(execution, e.error_code, e.message, fail_state=NOT_FOUND)
            except Exception as e:
                return await self._fail(execution, TASK_FAILED, str(e))

        try:
            with self._state(execution, CHECK_DESCRIPTION_SENTIMENT):
                sentiment = await self.moderation.detect_sentiment(detail.description)

            with self._state(execution, CHECK_IMAGE_MODERATION):
                image_moderations = [
                    await self.moderation.detect_moderation_labels(image)
                    for image in detail.images
                ]

            with self._state(execution, VALIDATE_CONTENT_INTEGRITY):
                result = evaluate_content_integrity(
                    {"contentSentiment": sentiment, "imageModerations": image_moderations}
                )
        except Exception as e:
            return await self._fail(execution, TASK_FAILED, str(e))

        with self._state(
            execution, IS_CONTENT_SAFE, "ChoiceStateEntered", validation_result=result.value
        ):
            if result == ValidationResult.FAIL:
                return await self._publish_and_succeed(
                    execution, PUBLICATION_DECLINED, EvaluationResult.DECLINED, DECLINED
                )
            return await self._wait_for_contract_approval(execution)

    async def _wait_for_contract_approval(self, execution: WorkflowExecution) -> WorkflowExecution:
        token = uuid.uuid4().hex
        with self._state(execution, WAIT_FOR_CONTRACT_APPROVAL):
            execution.task_token = token
            execution.status = ExecutionStatus.WAITING
            # Persist before registering so a resume triggered by the write finds it
            await self.executions.update_execution(execution)

            try:
                await self.contract_statuses.register_wait(execution.property_id, token)
            except Exception as e:
                execution.task_token = None
                return await self._fail(execution, TASK_FAILED, str(e))

        logger.info("Waiting for contract approval")
        return execution

    async def send_task_success(self, token: str, output: dict[str, Any]) -> None:
        execution = await self._waiting_execution(token)
        with execution_logging_context(
            execution.execution_id, execution.property_id
        ), trace_execution(execution.execution_id, execution.property_id, STATE_MACHINE_NAME):
            execution.task_token = None
            execution.status = ExecutionStatus.RUNNING
            execution.record("TaskStateExited", WAIT_FOR_CONTRACT_APPROVAL, output=output)
            await self.executions.update_execution(execution)
            logger.info("Contract approved, resuming workflow")
            await self._publish_and_succeed(
                execution, PUBLICATION_APPROVED, EvaluationResult.APPROVED, APPROVED
            )

    async def send_task_failure(self, token: str, error: str, cause: str = "") -> None:
        execution = await self._waiting_execution(token)
        with execution_logging_context(
            execution.execution_id, execution.property_id
        ), trace_execution(execution.execution_id, execution.property_id, STATE_MACHINE_NAME):
            execution.task_token = None
            await self._fail(execution, error, cause)

    async def _waiting_execution(self, token: str) -> WorkflowExecution:
        execution = await self.executions.get_execution_by_token(token)
        if (
            execution is None
            or execution.status != ExecutionStatus.WAITING
            or execution.task_token != token
        ):
            raise TaskTokenError("Task token is unknown or already consumed")
        return execution

    async def _publish_and_succeed(
        self,
        execution: WorkflowExecution,
        task_state: str,
        evaluation_result: EvaluationResult,
        succeed_state: str,
    ) -> WorkflowExecution:
        try:
            with self._state(execution, task_state):
                await self.bus.put_event(
                    create_publication_evaluation_completed_event(
                        source=self.source,
                        property_id=execution.property_id,
                        evaluation_result=evaluation_result.value,
                    )
                )
        except Exception as e:
            return await self._fail(execution, TASK_FAILED, str(e))

        execution.record("SucceedStateEntered", succeed_state)
        execution.record("ExecutionSucceeded", STATE_MACHINE_NAME)
        add_span_event("ExecutionSucceeded", {"state": succeed_state})
        execution.status = ExecutionStatus.SUCCEEDED
        execution.output = {
            "property_id": execution.property_id,
            "evaluation_result": evaluation_result.value,
        }
        execution.completed_at = datetime.now(UTC)
        await self.executions.update_execution(execution)
        logger.info(f"Approval workflow ended in {succeed_state}")
        return execution

    async def _fail(
        self,
        execution: WorkflowExecution,
        error: str,
        cause: str,
        fail_state: str | None = None,
    ) -> WorkflowExecution:
        if fail_state:
            execution.record("FailStateEntered", fail_state)
        execution.record("ExecutionFailed", STATE_MACHINE_NAME, error=error, cause=cause)
        add_span_event("ExecutionFailed", {"error": error, "cause": cause})
        execution.status = ExecutionStatus.FAILED
        execution.error = error
        execution.cause = cause
        execution.completed_at = datetime.now(UTC)
        await self.executions.update_execution(execution)
        logger.warning(f"Approval workflow failed: {error}", cause=cause)
        return execution

    async def get_execution(self, execution_id: str) -> WorkflowExecution | None:
        return await self.executions.get_execution(execution_id)

    async def list_executions(
        self,
        status: ExecutionStatus | None = None,
        property_id: str | None = None,
    ) -> list[WorkflowExecution]:
        return await self.executions.list_executions(status=status, property_id=property_id)
