"""
Contract existence check, the first task of the approval workflow.
"""

import json
from typing import Any

from loguru import logger

from propflow.core.exceptions import ContractStatusNotFoundError
from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class ContractExistsCheckerHandler(LambdaHandler):
    """
    Return the contract status record of the property in ``Input``.

    ContractStatusNotFoundError is raised, not returned, so the workflow
    engine can catch it by its error name.
    """

    name = "contract_exists_checker"

    async def handle(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        try:
            property_id = event["Input"]["property_id"]
        except (KeyError, TypeError):
            logger.error("Missing Input.property_id")
            return {"statusCode": 400, "body": json.dumps({"error": "Missing Input.property_id"})}

        try:
            record = await self.services.contract_status.check_contract_exists(property_id)
        except ContractStatusNotFoundError:
            logger.warning("No contract found", property_id=property_id)
            raise
        except Exception as e:
            logger.exception(f"Error checking contract: {e}")
            return {"statusCode": 500, "body": json.dumps({"error": str(e)})}

        return {"statusCode": 200, "body": json.dumps(record.to_dict())}


lambda_handler = lambda_entry(ContractExistsCheckerHandler)
