"""
Exception hierarchy for propflow.

Every error carries an HTTP-equivalent status code and a fixed error code so
Lambda adapters, the HTTP API and the workflow engine can react to it without
string matching:

- ValidationError (4xx): malformed input, never retried
- NotFoundError: a distinguished "nothing there" signal consumed by callers
- StorageError / EventPublishError (5xx): infrastructure failures
- TaskTokenError: resumption tokens that are unknown or already consumed
"""

from typing import Any


class PropFlowError(Exception):
    """Base exception for all propflow errors."""

    status_code: int = 500
    error_code: str = "InternalError"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a response body."""
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PropFlowError):
    """Input that can never succeed as given."""

    status_code = 400
    error_code = "ValidationError"


class EventValidationError(ValidationError):
    """An event envelope or detail payload failed schema validation."""

    error_code = "EventValidationError"


class InvalidPropertyIdError(ValidationError):
    """A property identifier with fewer than four segments."""

    error_code = "InvalidPropertyId"

    def __init__(self, property_id: str) -> None:
        super().__init__(f"Invalid propertyId {property_id}", property_id=property_id)
        self.property_id = property_id


class NotFoundError(PropFlowError):
    """Base for distinguished not-found conditions."""

    status_code = 404
    error_code = "NotFound"


class ContractStatusNotFoundError(NotFoundError):
    """
    No contract is recorded for a property.

    Surfaced to clients as a 400 so the approval workflow can branch on it
    (e.g. to route the listing owner to contract creation).
    """

    status_code = 400
    error_code = "ContractStatusNotFound"

    def __init__(self, property_id: str | None = None) -> None:
        message = "No contract found for specified Property ID"
        if property_id:
            super().__init__(message, property_id=property_id)
        else:
            super().__init__(message)
        self.property_id = property_id


class PropertyNotFoundError(NotFoundError):
    """A property is absent from the search projection or not approved."""

    error_code = "PropertyNotFound"


class StorageError(PropFlowError):
    """The document store rejected or failed a request."""

    error_code = "StorageError"


class ConditionalCheckFailedError(StorageError):
    """An optimistic-concurrency or existence condition did not hold."""

    status_code = 409
    error_code = "ConditionalCheckFailed"


class EventPublishError(PropFlowError):
    """The event bus did not accept an event."""

    error_code = "EventPublishError"


class TaskTokenError(PropFlowError):
    """A workflow resumption token is unknown, stale or already consumed."""

    status_code = 400
    error_code = "TaskTokenError"
