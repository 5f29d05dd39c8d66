"""API routers."""

from fastapi import APIRouter

from propflow.api.rest import approvals, contracts, search

router = APIRouter()
router.include_router(search.router, tags=["search"])
router.include_router(approvals.router, tags=["approvals"])
router.include_router(contracts.router, tags=["contracts"])
