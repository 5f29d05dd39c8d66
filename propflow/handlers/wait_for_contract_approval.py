"""
Approval wait registrar.

Invoked by the workflow's wait-for-callback task. Stores the task token on
the property's contract status record; the approvals sync consumer resumes
the workflow once that record also says APPROVED.
"""

import json
from typing import Any

from loguru import logger

from propflow.handlers.base import LambdaHandler
from propflow.runtime.services import lambda_entry


class WaitForContractApprovalHandler(LambdaHandler):
    name = "wait_for_contract_approval"

    async def handle(self, event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        try:
            task_input = event["Input"]
            property_id = task_input["property_id"]
            token = event["TaskToken"]
        except (KeyError, TypeError):
            logger.error("Missing Input.property_id or TaskToken")
            return {"statusCode": 400, "body": json.dumps({"error": "Missing Input.property_id or TaskToken"})}

        try:
            await self.services.contract_status.register_wait(property_id, token)
        except Exception as e:
            logger.exception(f"Error registering wait: {e}")
            return {"statusCode": 500, "body": json.dumps({"error": str(e)})}

        return {"statusCode": 200, "body": json.dumps(task_input)}


lambda_handler = lambda_entry(WaitForContractApprovalHandler)
