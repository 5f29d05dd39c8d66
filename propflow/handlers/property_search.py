"""
Property search API handler.

Routes API Gateway proxy events on their ``resource``:

    /search/{country}/{city}
    /search/{country}/{city}/{street}
    /properties/{country}/{city}/{street}/{number}
"""

from typing import Any

from loguru import logger

from propflow.core.exceptions import PropertyNotFoundError, ValidationError
from propflow.handlers.base import LambdaHandler, api_response
from propflow.runtime.services import lambda_entry

SEARCH_BY_CITY = "/search/{country}/{city}"
SEARCH_BY_STREET = "/search/{country}/{city}/{street}"
PROPERTY_DETAILS = "/properties/{country}/{city}/{street}/{number}"


class PropertySearchHandler(LambdaHandler):
    name = "property_search"

    async def handle(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        resource = event.get("resource")
        params = event.get("pathParameters") or {}
        search = self.services.search

        try:
            if resource == SEARCH_BY_CITY:
                rows = await search.list_by_city(params["country"], params["city"])
                return api_response(200, [row.to_public_dict() for row in rows])
            if resource == SEARCH_BY_STREET:
                rows = await search.list_by_street(
                    params["country"], params["city"], params["street"]
                )
                return api_response(200, [row.to_public_dict() for row in rows])
            if resource == PROPERTY_DETAILS:
                row = await search.property_details(
                    params["country"], params["city"], params["street"], params["number"]
                )
                return api_response(200, row.to_public_dict())
        except PropertyNotFoundError as e:
            return api_response(404, {"message": e.message})
        except KeyError as e:
            return api_response(400, {"message": f"Missing path parameter {e}"})
        except ValidationError as e:
            return api_response(400, {"message": e.message})
        except Exception as e:
            logger.exception(f"Error searching properties: {e}")
            return api_response(500, {"message": "Internal server error"})

        logger.warning(f"Unable to handle resource {resource}")
        return api_response(400, {"message": f"Unable to handle resource {resource}"})


lambda_handler = lambda_entry(PropertySearchHandler)
