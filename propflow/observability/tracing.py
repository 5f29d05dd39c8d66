"""
OpenTelemetry tracing for propflow.

Every handler invocation gets a span, and so does every approval workflow
execution and each state it enters. Tracing is disabled by default and
must be enabled via configure_tracing() (init_services() does this when
``enable_tracing`` is set).

Example:
    >>> from propflow.observability.tracing import TracingConfig, configure_tracing
    >>> configure_tracing(
    ...     TracingConfig(enabled=True, endpoint="http://localhost:4317")
    ... )
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Generator

from loguru import logger
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import Status, StatusCode

from propflow import __version__

# Global state for tracing configuration
_tracing_enabled: bool = False
_tracer: Any = None
_provider: TracerProvider | None = None
_current_span: ContextVar[Any] = ContextVar("current_span", default=None)


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing.

    Attributes:
        enabled: Whether tracing is enabled.
        service_name: Service name for traces.
        endpoint: OTLP endpoint URL.
        exporter: Exporter type ("otlp", "console").
        sample_rate: Sampling rate (0.0 to 1.0).
    """

    enabled: bool = False
    service_name: str = "propflow"
    endpoint: str | None = None
    exporter: str = "otlp"
    sample_rate: float = 1.0


def configure_tracing(config: TracingConfig, span_exporter: SpanExporter | None = None) -> None:
    """Configure and initialize OpenTelemetry tracing.

    Args:
        config: TracingConfig instance with tracing settings.
        span_exporter: Exporter that receives every finished span
            synchronously. Overrides ``config.exporter`` (tests pass an
            InMemorySpanExporter).
    """
    global _tracing_enabled, _tracer, _provider

    if _provider is not None:
        _provider.shutdown()
        _provider = None
    _tracing_enabled = False
    _tracer = None

    if not config.enabled:
        logger.debug("Tracing is disabled")
        return

    resource = Resource.create(
        {
            "service.name": config.service_name,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(config.sample_rate))

    if span_exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    else:
        _configure_exporter(provider, config)

    _provider = provider
    _tracer = provider.get_tracer("propflow", __version__)
    _tracing_enabled = True

    logger.info(
        f"Tracing configured: service={config.service_name}, "
        f"exporter={config.exporter}, endpoint={config.endpoint}, "
        f"sample_rate={config.sample_rate}"
    )


def _configure_exporter(provider: TracerProvider, config: TracingConfig) -> None:
    """Attach the exporter named in the configuration."""
    if config.exporter == "console":
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        logger.debug("Console span exporter configured")
    elif config.exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=config.endpoint)))
        logger.debug(f"OTLP span exporter configured for {config.endpoint or 'default endpoint'}")
    else:
        raise ValueError(f"Unknown trace exporter: {config.exporter}")


def is_tracing_enabled() -> bool:
    """Check if tracing is currently enabled."""
    return _tracing_enabled


@contextmanager
def _span(
    name: str,
    kind: trace.SpanKind,
    attributes: dict[str, Any],
) -> Generator[Any, None, None]:
    if not _tracing_enabled or _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span(
        name, kind=kind, record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"propflow.{key}", value)

        token = _current_span.set(span)
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            span.set_attribute("propflow.error_type", type(e).__name__)
            raise
        finally:
            _current_span.reset(token)


@contextmanager
def trace_handler(
    handler: str, request_id: str | None = None, cold_start: bool = False
) -> Generator[Any, None, None]:
    """Span for one Lambda handler invocation.

    Example:
        with trace_handler("request_approval", context.aws_request_id):
            ...
    """
    with _span(
        f"handler:{handler}",
        trace.SpanKind.SERVER,
        {"handler": handler, "request_id": request_id, "cold_start": cold_start},
    ) as span:
        yield span


@contextmanager
def trace_execution(
    execution_id: str, property_id: str, state_machine: str
) -> Generator[Any, None, None]:
    """Span for running (or resuming) an approval workflow execution."""
    with _span(
        f"execution:{state_machine}",
        trace.SpanKind.INTERNAL,
        {"execution_id": execution_id, "property_id": property_id},
    ) as span:
        yield span


@contextmanager
def trace_state(execution_id: str, state: str, **attributes: Any) -> Generator[Any, None, None]:
    """Span for a state of an approval workflow execution."""
    with _span(
        f"state:{state}",
        trace.SpanKind.INTERNAL,
        {"execution_id": execution_id, "state": state, **attributes},
    ) as span:
        yield span


def add_span_event(name: str, attributes: dict[str, Any] | None = None) -> None:
    """Add an event to the current span.

    Example:
        add_span_event("ExecutionSucceeded", {"state": "Approved"})
    """
    if not _tracing_enabled:
        return

    span = _current_span.get()
    if span is not None:
        span.add_event(name, attributes=attributes or {})
