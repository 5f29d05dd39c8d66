"""
Approvals sync: consumer of the contract status table's change stream.

Resumes the workflow waiting on a property as soon as a write leaves its
record with both a task token and an APPROVED status.
"""

from typing import Any

from loguru import logger

from propflow.engine.streams import deserialize_image
from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class PropertiesApprovalSyncHandler(LambdaHandler):
    """Returns a partial batch response listing the records that failed."""

    name = "properties_approval_sync"

    async def handle(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        failures: list[dict[str, str]] = []
        service = self.services.contract_status

        for index, record in enumerate(event.get("Records", [])):
            new_image = deserialize_image(record.get("dynamodb", {}).get("NewImage"))
            if not new_image:
                logger.debug("Stream record without NewImage", event_id=record.get("eventID"))
                continue
            try:
                await service.resume_if_approved(new_image)
            except Exception as e:
                logger.exception(
                    f"Error resuming approval workflow: {e}",
                    property_id=new_image.get("property_id"),
                )
                failures.append(
                    {"itemIdentifier": new_image.get("contract_id") or f"Index: {index}"}
                )

        return {"batchItemFailures": failures}


lambda_handler = lambda_entry(PropertiesApprovalSyncHandler)
