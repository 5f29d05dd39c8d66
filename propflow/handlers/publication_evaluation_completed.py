"""
Search projection updater.

Target of the PublicationEvaluationCompleted rule: writes the evaluation
result as the listing's status. Failures are logged and swallowed.
"""

from typing import Any

from loguru import logger

from propflow.engine.events import EventType, parse_event
from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class PublicationEvaluationCompletedHandler(LambdaHandler):
    name = "publication_evaluation_completed"

    async def handle(self, event: dict[str, Any], context: Any = None) -> None:
        try:
            envelope = parse_event(event, expected=EventType.PUBLICATION_EVALUATION_COMPLETED)
            await self.services.publication.apply_evaluation(envelope.detail)
        except Exception as e:
            logger.exception(f"Error applying publication evaluation: {e}")


lambda_handler = lambda_entry(PublicationEvaluationCompletedHandler)
