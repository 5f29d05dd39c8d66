"""Controllers behind the HTTP API routes."""

from typing import Any

from fastapi import HTTPException

from propflow.api.config import settings
from propflow.api.schemas import (
    ApprovalRequest,
    ContractRequest,
    EnqueuedResponse,
    PropertyResponse,
)
from propflow.engine.queue import MessageQueue
from propflow.runtime.services import Services
from propflow.storage.schemas import PropertyRecord


def _to_response(record: PropertyRecord) -> PropertyResponse:
    return PropertyResponse(**record.to_public_dict())


class PropertyController:
    """Read-only queries on the search projection."""

    def __init__(self, services: Services):
        self.search = services.search

    async def list_by_city(self, country: str, city: str) -> list[PropertyResponse]:
        return [_to_response(r) for r in await self.search.list_by_city(country, city)]

    async def list_by_street(self, country: str, city: str, street: str) -> list[PropertyResponse]:
        rows = await self.search.list_by_street(country, city, street)
        return [_to_response(r) for r in rows]

    async def property_details(
        self, country: str, city: str, street: str, number: str
    ) -> PropertyResponse:
        return _to_response(await self.search.property_details(country, city, street, number))


class CommandController:
    """Enqueue commands for the approval and contract workers."""

    def __init__(self, services: Services):
        self.services = services

    async def request_approval(self, request: ApprovalRequest) -> EnqueuedResponse:
        return await self._enqueue(
            self.services.approvals_queue, {"property_id": request.property_id}
        )

    async def submit_contract(self, method: str, request: ContractRequest) -> EnqueuedResponse:
        return await self._enqueue(
            self.services.contracts_queue,
            request.model_dump(exclude_none=True),
            {"HttpMethod": method},
        )

    async def _enqueue(
        self,
        queue: MessageQueue | None,
        body: dict[str, Any],
        attributes: dict[str, str] | None = None,
    ) -> EnqueuedResponse:
        if queue is None:
            raise HTTPException(status_code=503, detail="Queue is not configured")
        message_id = await queue.send_message(body, attributes)
        if settings.drain_local and self.services.runtime is not None:
            await self.services.runtime.drain()
        return EnqueuedResponse(message_id=message_id)
