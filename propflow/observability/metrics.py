"""
OpenTelemetry metrics for propflow.

Business counters (``ApprovalsRequested``) and the ``ColdStart`` counter of
the Lambda handlers. Metrics are disabled by default; increment_counter()
is a no-op until configure_metrics() enables them.
"""

from dataclasses import dataclass
from typing import Any

from loguru import logger
from opentelemetry.metrics import Counter, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource

from propflow import __version__

APPROVALS_REQUESTED = "ApprovalsRequested"
COLD_START = "ColdStart"

_meter: Meter | None = None
_provider: MeterProvider | None = None
_counters: dict[str, Counter] = {}


@dataclass
class MetricsConfig:
    """Configuration for OpenTelemetry metrics.

    Attributes:
        enabled: Whether metrics are recorded.
        service_name: Service name attached to every metric.
        endpoint: OTLP endpoint URL.
        exporter: Exporter type ("otlp", "console").
        export_interval_ms: How often metrics are pushed.
    """

    enabled: bool = False
    service_name: str = "propflow"
    endpoint: str | None = None
    exporter: str = "otlp"
    export_interval_ms: int = 60000


def configure_metrics(config: MetricsConfig, reader: MetricReader | None = None) -> None:
    """Configure OpenTelemetry metrics.

    Args:
        config: MetricsConfig instance.
        reader: Metric reader to collect with. Overrides ``config.exporter``
            (tests pass an InMemoryMetricReader).
    """
    global _meter, _provider

    if _provider is not None:
        _provider.shutdown()
        _provider = None
    _meter = None
    _counters.clear()

    if not config.enabled:
        logger.debug("Metrics are disabled")
        return

    reader = reader or _create_reader(config)
    _provider = MeterProvider(
        resource=Resource.create(
            {"service.name": config.service_name, "service.version": __version__}
        ),
        metric_readers=[reader],
    )
    _meter = _provider.get_meter("propflow", __version__)
    logger.info(f"Metrics configured: service={config.service_name}, exporter={config.exporter}")


def _create_reader(config: MetricsConfig) -> MetricReader:
    if config.exporter == "console":
        exporter: Any = ConsoleMetricExporter()
    elif config.exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        exporter = OTLPMetricExporter(endpoint=config.endpoint)
    else:
        raise ValueError(f"Unknown metric exporter: {config.exporter}")
    return PeriodicExportingMetricReader(
        exporter, export_interval_millis=config.export_interval_ms
    )


def is_metrics_enabled() -> bool:
    return _meter is not None


def increment_counter(name: str, value: int = 1, **attributes: str) -> None:
    """
    Add to a named counter.

    Example:
        increment_counter(APPROVALS_REQUESTED)
    """
    if _meter is None:
        return

    counter = _counters.get(name)
    if counter is None:
        counter = _counters[name] = _meter.create_counter(name, unit="1")
    counter.add(value, attributes=attributes)
