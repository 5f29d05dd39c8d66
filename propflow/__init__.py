"""
propflow - event-driven property listing services

Three bounded contexts cooperate over an event bus:
- contracts: records sale contracts and announces status changes
- properties: tracks contract status and runs the publication approval workflow
- web: serves the search projection and requests publication approval

Every Lambda handler is a thin adapter around a domain service. The same
services run in-process on the LocalRuntime for tests, the CLI and the HTTP
API.

Quick Start:
    >>> import propflow
    >>> from propflow import LocalRuntime
    >>>
    >>> propflow.configure(backend="memory")
    >>> runtime = LocalRuntime()
    >>> await runtime.submit_contract("POST", {"property_id": "usa/anytown/main-street/111"})
    >>> record = await runtime.services.contract_status.check_contract_exists(
    ...     "usa/anytown/main-street/111"
    ... )
"""

__version__ = "0.1.0"

# Configuration
from propflow.config import PropFlowConfig, configure, get_config, reset_config

# Exceptions
from propflow.core.exceptions import (
    ConditionalCheckFailedError,
    ContractStatusNotFoundError,
    EventPublishError,
    EventValidationError,
    InvalidPropertyIdError,
    NotFoundError,
    PropertyNotFoundError,
    PropFlowError,
    StorageError,
    TaskTokenError,
    ValidationError,
)

# Domain primitives
from propflow.core.integrity import ValidationResult, evaluate_content_integrity
from propflow.core.keys import property_keys

# Events
from propflow.engine.events import EventEnvelope, EventType, parse_event

# Domain services
from propflow.contracts.service import ContractService
from propflow.properties.contract_status import ContractStatusService
from propflow.web.publication import PublicationService
from propflow.web.search import PropertySearchService
from propflow.workflow.approval import ApprovalStateMachine

# Storage
from propflow.storage.schemas import (
    ContractStatus,
    ContractStatusRecord,
    PropertyRecord,
    PropertyStatus,
    WorkflowExecution,
)

# Runtime
from propflow.runtime import LocalRuntime, Services, get_services, init_services

# Logging and observability
from propflow.observability.logging import configure_logging

__all__ = [
    # Version
    "__version__",
    # Configuration
    "PropFlowConfig",
    "configure",
    "get_config",
    "reset_config",
    # Exceptions
    "PropFlowError",
    "ValidationError",
    "EventValidationError",
    "InvalidPropertyIdError",
    "NotFoundError",
    "ContractStatusNotFoundError",
    "PropertyNotFoundError",
    "StorageError",
    "ConditionalCheckFailedError",
    "EventPublishError",
    "TaskTokenError",
    # Domain primitives
    "ValidationResult",
    "evaluate_content_integrity",
    "property_keys",
    # Events
    "EventEnvelope",
    "EventType",
    "parse_event",
    # Domain services
    "ContractService",
    "ContractStatusService",
    "PublicationService",
    "PropertySearchService",
    "ApprovalStateMachine",
    # Storage
    "ContractStatus",
    "ContractStatusRecord",
    "PropertyRecord",
    "PropertyStatus",
    "WorkflowExecution",
    # Runtime
    "LocalRuntime",
    "Services",
    "get_services",
    "init_services",
    # Logging
    "configure_logging",
]
