"""
Contracts context: records sale contracts and announces their status.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from propflow.core.exceptions import ConditionalCheckFailedError, ValidationError
from propflow.engine.bus import EventBus
from propflow.engine.events import EventEnvelope, create_contract_status_changed_event
from propflow.engine.streams import StreamEventName, deserialize_image
from propflow.storage.base import ContractStore
from propflow.storage.schemas import ContractRecord, ContractStatus


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class ContractService:
    """
    Create and approve contracts, and publish their status changes.

    Example:
        >>> contracts = ContractService(store, bus, source="propflow.contracts")
        >>> await contracts.create_contract({"property_id": "usa/anytown/main-street/111"})
    """

    def __init__(self, store: ContractStore, bus: EventBus, source: str) -> None:
        self.store = store
        self.bus = bus
        self.source = source

    async def create_contract(self, payload: dict[str, Any]) -> ContractRecord | None:
        """
        Create a DRAFT contract for a property.

        Returns:
            The new contract, or None if an active contract already exists
        """
        property_id = payload.get("property_id")
        if not property_id:
            raise ValidationError("property_id is required")

        now = _now_iso()
        record = ContractRecord(
            property_id=property_id,
            contract_id=str(uuid.uuid4()),
            contract_status=ContractStatus.DRAFT.value,
            address=payload.get("address") or {},
            seller_name=payload.get("seller_name"),
            contract_created=now,
            contract_last_modified_on=now,
        )
        try:
            await self.store.create_contract(record)
        except ConditionalCheckFailedError:
            logger.info("Contract already exists", property_id=property_id)
            return None

        logger.info("Contract created", property_id=property_id, contract_id=record.contract_id)
        return record

    async def approve_contract(self, payload: dict[str, Any]) -> ContractRecord | None:
        """
        Approve the DRAFT contract of a property.

        Returns:
            The approved contract, or None if there is no DRAFT contract
        """
        property_id = payload.get("property_id")
        if not property_id:
            raise ValidationError("property_id is required")

        try:
            record = await self.store.approve_contract(property_id, _now_iso())
        except ConditionalCheckFailedError:
            logger.info(
                "Contract does not exist or is not in DRAFT status", property_id=property_id
            )
            return None

        logger.info("Contract approved", property_id=property_id, contract_id=record.contract_id)
        return record

    async def handle_command(self, method: str | None, payload: dict[str, Any]) -> ContractRecord | None:
        """Dispatch a contract command by its HTTP method."""
        if method == "POST":
            return await self.create_contract(payload)
        if method == "PUT":
            return await self.approve_contract(payload)
        logger.error(f"Request not supported: {method}", property_id=payload.get("property_id"))
        return None

    async def publish_status_change(self, stream_record: dict[str, Any]) -> EventEnvelope | None:
        """
        Publish ContractStatusChanged for an INSERT or MODIFY of the contracts table.

        Returns:
            The published event, or None for records that carry no new state
        """
        if stream_record.get("eventName") not in (
            StreamEventName.INSERT.value,
            StreamEventName.MODIFY.value,
        ):
            return None

        image = deserialize_image(stream_record.get("dynamodb", {}).get("NewImage"))
        if not image:
            return None

        event = create_contract_status_changed_event(
            source=self.source,
            contract_id=image["contract_id"],
            property_id=image["property_id"],
            contract_status=image["contract_status"],
            contract_last_modified_on=image["contract_last_modified_on"],
        )
        await self.bus.put_event(event)
        logger.info(
            f"Contract status change published: {image['contract_status']}",
            property_id=image["property_id"],
            event_id=event.id,
        )
        return event
