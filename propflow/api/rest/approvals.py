"""Publication approval endpoint."""

from fastapi import APIRouter, Depends

from propflow.api.controllers import CommandController
from propflow.api.dependencies import get_api_services
from propflow.api.schemas import ApprovalRequest, EnqueuedResponse
from propflow.runtime.services import Services

router = APIRouter()


@router.post("/request_approval", response_model=EnqueuedResponse)
async def request_approval(
    request: ApprovalRequest,
    services: Services = Depends(get_api_services),
) -> EnqueuedResponse:
    """Enqueue an approval request for a listing."""
    return await CommandController(services).request_approval(request)
