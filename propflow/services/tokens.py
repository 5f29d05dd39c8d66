"""
Workflow resumption through task tokens.

StepFunctionsTaskTokens resumes deployed executions. The local
ApprovalStateMachine implements the same interface.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from propflow.core.exceptions import PropFlowError, TaskTokenError

_TOKEN_ERROR_CODES = ("TaskDoesNotExist", "InvalidToken", "TaskTimedOut")


class TaskTokenService(ABC):
    """Resume a workflow waiting on a task token."""

    @abstractmethod
    async def send_task_success(self, token: str, output: dict[str, Any]) -> None:
        """
        Resume the waiting execution with ``output``.

        Raises:
            TaskTokenError: If the token is unknown, consumed or timed out
        """
        pass

    @abstractmethod
    async def send_task_failure(self, token: str, error: str, cause: str = "") -> None:
        """
        Fail the waiting execution.

        Raises:
            TaskTokenError: If the token is unknown, consumed or timed out
        """
        pass


class StepFunctionsTaskTokens(TaskTokenService):
    """Task token callbacks through the Step Functions API."""

    def __init__(self, client: Any = None, region: str | None = None) -> None:
        self.region = region
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("stepfunctions", region_name=self.region)
        return self._client

    async def send_task_success(self, token: str, output: dict[str, Any]) -> None:
        await self._send("send_task_success", taskToken=token, output=json.dumps(output))

    async def send_task_failure(self, token: str, error: str, cause: str = "") -> None:
        await self._send("send_task_failure", taskToken=token, error=error, cause=cause)

    async def _send(self, operation: str, **kwargs: Any) -> None:
        method = getattr(self.client, operation)
        try:
            await asyncio.to_thread(method, **kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _TOKEN_ERROR_CODES:
                raise TaskTokenError(f"{operation} rejected token: {code}", code=code) from e
            raise PropFlowError(f"{operation} failed: {e}") from e
        except BotoCoreError as e:
            raise PropFlowError(f"{operation} failed: {e}") from e
        logger.debug(f"Step Functions {operation} sent")
