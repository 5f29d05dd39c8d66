"""
Loguru logging configuration for propflow.

Provides structured logging with context-aware formatting for handler
invocations, properties and workflow executions.

Features:
- Environment variable configuration for Lambda deployments
- Standard JSON schema compatible with CloudWatch Logs Insights/ELK/Datadog
- Context managers for scoped logging
- Automatic context binding for handlers and executions
"""

import json
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

from loguru import logger

CONTEXT_KEYS = ("handler", "request_id", "property_id", "execution_id")


def configure_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_logs: bool = False,
    show_context: bool = True,
) -> None:
    """
    Configure propflow logging with loguru.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        json_logs: If True, output one JSON object per line (use in Lambda)
        show_context: If True, include handler/property/execution context

    Examples:
        # Local development
        configure_logging(level="DEBUG")

        # Lambda: JSON lines picked up by CloudWatch Logs Insights
        configure_logging(json_logs=True)
    """
    logger.remove()

    if json_logs:
        logger.add(
            sys.stderr,
            format="{message}",
            level=level,
            colorize=False,
            serialize=False,
            filter=_create_json_filter(show_context),
        )
    else:
        console_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

        def format_with_context(record: dict[str, Any]) -> bool:
            """Add context fields to the format string dynamically."""
            extra_str = ""
            if show_context and record["extra"]:
                context_parts = [
                    f"{key}={record['extra'][key]}"
                    for key in CONTEXT_KEYS
                    if key in record["extra"]
                ]
                if context_parts:
                    extra_str = " | " + " ".join(context_parts)
            record["extra"]["_context"] = extra_str
            return True

        logger.add(
            sys.stderr,
            format=console_format + "{extra[_context]}",
            level=level,
            colorize=True,
            filter=format_with_context,  # type: ignore[arg-type]
        )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if json_logs:
            logger.add(
                log_file,
                format="{message}",
                level=level,
                rotation="100 MB",
                retention="30 days",
                compression="gz",
                serialize=False,
                filter=_create_json_filter(show_context),
            )
        else:
            logger.add(
                log_file,
                format=(
                    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                    "{level: <8} | "
                    "{name}:{function}:{line} | "
                    "{message} | "
                    "{extra}"
                ),
                level=level,
                rotation="100 MB",
                retention="30 days",
                compression="gz",
            )

    logger.debug(f"propflow logging configured at level {level}")


def _create_json_filter(show_context: bool) -> Any:
    """Create a filter function that formats logs as JSON."""

    def json_filter(record: dict[str, Any]) -> bool:
        record["message"] = _format_for_json(record, show_context)
        return True

    return json_filter


def _format_for_json(record: dict[str, Any], show_context: bool = True) -> str:
    """Format log record as JSON compatible with log aggregators.

    Args:
        record: Loguru log record.
        show_context: Whether to include context fields.

    Returns:
        JSON string representation of the log.
    """
    context = {}
    extra = {}

    for key, value in record["extra"].items():
        if key.startswith("_"):
            continue
        if key in CONTEXT_KEYS:
            context[key] = value
        else:
            extra[key] = _safe_serialize(value)

    log_obj: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if show_context and context:
        log_obj["context"] = context

    if extra:
        log_obj["extra"] = extra

    if record["exception"] is not None:
        log_obj["exception"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else None,
            "value": str(record["exception"].value) if record["exception"].value else None,
            "traceback": record["exception"].traceback is not None,
        }

    return json.dumps(log_obj, default=str)


def _safe_serialize(value: Any) -> Any:
    """Safely serialize a value for JSON output."""
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    if isinstance(value, (list, tuple)):
        return [_safe_serialize(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _safe_serialize(v) for k, v in value.items()}
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def configure_logging_from_env() -> None:
    """Configure logging from environment variables.

    Environment variables:
        PROPFLOW_LOG_LEVEL: Log level (falls back to LOG_LEVEL, then INFO)
        PROPFLOW_LOG_FORMAT: "json" or "console"
        PROPFLOW_LOG_FILE: Optional file path for log output
        PROPFLOW_LOG_CONTEXT: Whether to show context ("true" or "false")
    """
    level = os.getenv("PROPFLOW_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO")).upper()
    format_type = os.getenv("PROPFLOW_LOG_FORMAT", "console").lower()
    log_file = os.getenv("PROPFLOW_LOG_FILE")
    show_context_str = os.getenv("PROPFLOW_LOG_CONTEXT", "true").lower()
    show_context = show_context_str in ("true", "1", "yes")

    configure_logging(
        level=level,
        log_file=log_file,
        json_logs=(format_type == "json"),
        show_context=show_context,
    )


@contextmanager
def handler_logging_context(
    handler: str, request_id: str | None = None
) -> Generator[None, None, None]:
    """Bind handler name and invocation id to all logs within scope.

    Example:
        with handler_logging_context("contract_status_changed", "req-1"):
            logger.info("Handling event")
    """
    with logger.contextualize(handler=handler, request_id=request_id):
        yield


@contextmanager
def execution_logging_context(
    execution_id: str, property_id: str | None = None
) -> Generator[None, None, None]:
    """Bind workflow execution context to all logs within scope."""
    with logger.contextualize(execution_id=execution_id, property_id=property_id):
        yield


# Default configuration on import; override with configure_logging() or
# configure_logging_from_env().
if len(logger._core.handlers) <= 1:  # type: ignore[attr-defined]
    if os.getenv("PROPFLOW_LOG_LEVEL") or os.getenv("PROPFLOW_LOG_FORMAT"):
        configure_logging_from_env()
    else:
        configure_logging(level="INFO", show_context=False)
