"""
Base class for Lambda handlers.

A handler is a thin adapter: it validates the incoming event, calls a
domain service and shapes the response. Lambda invokes it synchronously
through __call__; the local runtime awaits invoke() directly.

Every invocation runs inside a handler span. The first invocation in a
process also counts a ColdStart.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any

from propflow.observability.logging import handler_logging_context
from propflow.observability.metrics import COLD_START, increment_counter
from propflow.observability.tracing import trace_handler
from propflow.runtime.services import Services

JSON_HEADERS = {"Content-Type": "application/json"}

_cold_start = True


def api_response(status_code: int, body: Any) -> dict[str, Any]:
    """Build an API Gateway proxy response with a JSON body."""
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(body, default=str),
    }


class LambdaHandler(ABC):
    """
    Abstract base class for handlers.

    Subclasses set ``name`` and implement handle().
    """

    name: str = "handler"

    def __init__(self, services: Services) -> None:
        self.services = services

    @abstractmethod
    async def handle(self, event: dict[str, Any], context: Any = None) -> Any:
        """Process one invocation."""
        pass

    async def invoke(self, event: dict[str, Any], context: Any = None) -> Any:
        """Run handle() with the handler's logging context and span."""
        global _cold_start
        cold_start, _cold_start = _cold_start, False
        if cold_start:
            increment_counter(COLD_START, handler=self.name)

        request_id = getattr(context, "aws_request_id", None)
        with handler_logging_context(self.name, request_id), trace_handler(
            self.name, request_id, cold_start=cold_start
        ):
            return await self.handle(event, context)

    def __call__(self, event: dict[str, Any], context: Any = None) -> Any:
        return asyncio.run(self.invoke(event, context))
