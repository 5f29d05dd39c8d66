"""Properties bounded context: contract status and the approval workflow's tasks."""

from propflow.properties.contract_status import ContractStatusService, is_stale

__all__ = ["ContractStatusService", "is_stale"]
