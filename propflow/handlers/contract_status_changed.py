"""
Status change ingest.

Target of the ContractStatusChanged rule: records the contract fields of a
property. Failures are logged and swallowed; redelivery belongs to the
event bus.
"""

from typing import Any

from loguru import logger

from propflow.engine.events import EventType, parse_event
from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class ContractStatusChangedHandler(LambdaHandler):
    """Upsert the contract status record of a property."""

    name = "contract_status_changed"

    async def handle(self, event: dict[str, Any], context: Any = None) -> None:
        try:
            envelope = parse_event(event, expected=EventType.CONTRACT_STATUS_CHANGED)
            await self.services.contract_status.record_status_change(envelope.detail)
        except Exception as e:
            logger.exception(f"Error recording contract status change: {e}")


lambda_handler = lambda_entry(ContractStatusChangedHandler)
