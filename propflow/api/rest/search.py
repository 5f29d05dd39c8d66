"""Property search endpoints."""

from fastapi import APIRouter, Depends

from propflow.api.controllers import PropertyController
from propflow.api.dependencies import get_api_services
from propflow.api.schemas import PropertyResponse
from propflow.runtime.services import Services

router = APIRouter()


@router.get("/search/{country}/{city}", response_model=list[PropertyResponse])
async def list_by_city(
    country: str,
    city: str,
    services: Services = Depends(get_api_services),
) -> list[PropertyResponse]:
    """List approved properties in a city."""
    return await PropertyController(services).list_by_city(country, city)


@router.get("/search/{country}/{city}/{street}", response_model=list[PropertyResponse])
async def list_by_street(
    country: str,
    city: str,
    street: str,
    services: Services = Depends(get_api_services),
) -> list[PropertyResponse]:
    """List approved properties on a street."""
    return await PropertyController(services).list_by_street(country, city, street)


@router.get(
    "/properties/{country}/{city}/{street}/{number}",
    response_model=PropertyResponse,
    responses={404: {"description": "Property not found or not approved"}},
)
async def property_details(
    country: str,
    city: str,
    street: str,
    number: str,
    services: Services = Depends(get_api_services),
) -> PropertyResponse:
    """Get a single approved property.

    Raises:
        PropertyNotFoundError: Rendered as 404 by the application's error handler.
    """
    return await PropertyController(services).property_details(country, city, street, number)
