"""Contracts bounded context."""

from propflow.contracts.service import ContractService

__all__ = ["ContractService"]
