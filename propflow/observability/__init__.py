"""Observability for propflow: structured loguru logging, OpenTelemetry traces and metrics."""

from propflow.observability.logging import (
    configure_logging,
    configure_logging_from_env,
    execution_logging_context,
    handler_logging_context,
)

__all__ = [
    "configure_logging",
    "configure_logging_from_env",
    "execution_logging_context",
    "handler_logging_context",
]
