"""
Lambda handlers.

Each module exposes ``lambda_handler`` (and ``stream_handler`` where a
function has a second trigger) for the Lambda runtime.
"""

from propflow.handlers.base import LambdaHandler, api_response
from propflow.handlers.content_integrity_validator import ContentIntegrityValidatorHandler
from propflow.handlers.contract_events import ContractCommandHandler, ContractStreamPublisherHandler
from propflow.handlers.contract_exists_checker import ContractExistsCheckerHandler
from propflow.handlers.contract_status_changed import ContractStatusChangedHandler
from propflow.handlers.properties_approval_sync import PropertiesApprovalSyncHandler
from propflow.handlers.property_search import PropertySearchHandler
from propflow.handlers.publication_evaluation_completed import PublicationEvaluationCompletedHandler
from propflow.handlers.request_approval import RequestApprovalHandler
from propflow.handlers.wait_for_contract_approval import WaitForContractApprovalHandler

__all__ = [
    "LambdaHandler",
    "api_response",
    "ContentIntegrityValidatorHandler",
    "ContractCommandHandler",
    "ContractExistsCheckerHandler",
    "ContractStatusChangedHandler",
    "ContractStreamPublisherHandler",
    "PropertiesApprovalSyncHandler",
    "PropertySearchHandler",
    "PublicationEvaluationCompletedHandler",
    "RequestApprovalHandler",
    "WaitForContractApprovalHandler",
]
