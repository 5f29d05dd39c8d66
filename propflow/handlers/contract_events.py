"""
Contracts context handlers.

ContractCommandHandler consumes contract commands from the contracts
queue; the ``HttpMethod`` message attribute selects create (POST) or
approve (PUT). ContractStreamPublisherHandler turns writes to the
contracts table into ContractStatusChanged events.
"""

import json
from typing import Any

from loguru import logger

from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


def _http_method(record: dict[str, Any]) -> str | None:
    attribute = (record.get("messageAttributes") or {}).get("HttpMethod") or {}
    return attribute.get("stringValue")


class ContractCommandHandler(LambdaHandler):
    """Create or approve contracts; store errors propagate for redelivery."""

    name = "contract_events"

    async def handle(self, event: dict[str, Any], context: Any = None) -> None:
        contracts = self.services.contracts

        for record in event.get("Records", []):
            try:
                payload = json.loads(record["body"])
            except (KeyError, TypeError, ValueError):
                logger.error("Malformed contract command", message_id=record.get("messageId"))
                continue
            method = _http_method(record)
            logger.info(f"Contract command {method}", property_id=payload.get("property_id"))
            await contracts.handle_command(method, payload)


class ContractStreamPublisherHandler(LambdaHandler):
    """Publish ContractStatusChanged for each contracts table write."""

    name = "contract_status_publisher"

    async def handle(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        failures: list[dict[str, str]] = []
        contracts = self.services.contracts

        for record in event.get("Records", []):
            try:
                await contracts.publish_status_change(record)
            except Exception as e:
                logger.exception(f"Error publishing contract status change: {e}")
                sequence = record.get("dynamodb", {}).get("SequenceNumber", "")
                failures.append({"itemIdentifier": sequence})

        return {"batchItemFailures": failures}


lambda_handler = lambda_entry(ContractCommandHandler)
stream_handler = lambda_entry(ContractStreamPublisherHandler)
