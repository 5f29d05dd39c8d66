"""Core domain primitives: errors, key derivation and the content integrity gate."""

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
from propflow.core.integrity import ValidationResult, evaluate_content_integrity
from propflow.core.keys import PropertyAddress, PropertyKey, parse_property_id, property_keys

__all__ = [
    "ConditionalCheckFailedError",
    "ContractStatusNotFoundError",
    "EventPublishError",
    "EventValidationError",
    "InvalidPropertyIdError",
    "NotFoundError",
    "PropertyNotFoundError",
    "PropFlowError",
    "StorageError",
    "TaskTokenError",
    "ValidationError",
    "ValidationResult",
    "evaluate_content_integrity",
    "PropertyAddress",
    "PropertyKey",
    "parse_property_id",
    "property_keys",
]
