"""
Approval-request publisher.

Consumes ``{"property_id": ...}`` messages from the approvals queue and
asks the properties context to evaluate the listing. Bad requests are
logged and dropped; a bus failure propagates so the queue redelivers.
"""

import json
from typing import Any

from loguru import logger

from propflow.core.exceptions import NotFoundError, ValidationError
from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class RequestApprovalHandler(LambdaHandler):
    name = "request_approval"

    async def handle(self, event: dict[str, Any], context: Any = None) -> None:
        publication = self.services.publication

        for record in event.get("Records", []):
            try:
                property_id = json.loads(record["body"])["property_id"]
            except (KeyError, TypeError, ValueError):
                logger.error("Malformed approval request", message_id=record.get("messageId"))
                continue

            try:
                await publication.request_approval(property_id)
            except (ValidationError, NotFoundError) as e:
                logger.error(f"Dropping approval request: {e.message}", property_id=property_id)


lambda_handler = lambda_entry(RequestApprovalHandler)
