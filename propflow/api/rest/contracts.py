"""Contract command endpoints."""

from fastapi import APIRouter, Depends

from propflow.api.controllers import CommandController
from propflow.api.dependencies import get_api_services
from propflow.api.schemas import ContractRequest, EnqueuedResponse
from propflow.runtime.services import Services

router = APIRouter()


@router.post("/contracts", response_model=EnqueuedResponse)
async def create_contract(
    request: ContractRequest,
    services: Services = Depends(get_api_services),
) -> EnqueuedResponse:
    """Enqueue creation of a DRAFT contract."""
    return await CommandController(services).submit_contract("POST", request)


@router.put("/contracts", response_model=EnqueuedResponse)
async def approve_contract(
    request: ContractRequest,
    services: Services = Depends(get_api_services),
) -> EnqueuedResponse:
    """Enqueue approval of a DRAFT contract."""
    return await CommandController(services).submit_contract("PUT", request)
