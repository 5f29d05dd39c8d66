"""
Content integrity gate task.

The event is the moderation bundle itself. A malformed bundle is reported
as an internal error (``statusCode`` 500), never as FAIL.
"""

from typing import Any

from loguru import logger

from propflow.core.integrity import evaluate_content_integrity
from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class ContentIntegrityValidatorHandler(LambdaHandler):
    name = "content_integrity_validator"

    async def handle(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        try:
            result = evaluate_content_integrity(event)
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error during validation of content integrity: {e!r}")
            return {"statusCode": 500, "error": repr(e)}
        return {"statusCode": 200, "validation_result": result.value}


lambda_handler = lambda_entry(ContentIntegrityValidatorHandler)
