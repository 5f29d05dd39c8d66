"""
Process-wide collaborators for handlers.

Services bundles the stores, event bus, queues, task token service and
moderation service. It is built once per process by init_services() and
passed to every handler's constructor, so handlers never create clients of
their own and tests can inject fakes with set_services().
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from loguru import logger

from propflow.config import PropFlowConfig, get_config
from propflow.contracts.service import ContractService
from propflow.engine.bus import EventBus
from propflow.engine.queue import MessageQueue
from propflow.properties.contract_status import ContractStatusService
from propflow.services.moderation import ModerationService
from propflow.services.tokens import TaskTokenService
from propflow.storage.config import Stores
from propflow.web.publication import PublicationService
from propflow.web.search import PropertySearchService

if TYPE_CHECKING:
    from propflow.runtime.local import LocalRuntime


@dataclass
class Services:
    """Collaborators shared by all handlers of a process."""

    config: PropFlowConfig
    stores: Stores
    bus: EventBus
    tokens: TaskTokenService
    moderation: ModerationService
    approvals_queue: MessageQueue | None = None
    contracts_queue: MessageQueue | None = None
    runtime: "LocalRuntime | None" = None

    @property
    def contract_status(self) -> ContractStatusService:
        return ContractStatusService(
            self.stores.contract_statuses,
            tokens=self.tokens,
            max_write_attempts=self.config.max_write_attempts,
        )

    @property
    def search(self) -> PropertySearchService:
        return PropertySearchService(self.stores.properties)

    @property
    def publication(self) -> PublicationService:
        return PublicationService(self.stores.properties, self.bus, self.config.web_source)

    @property
    def contracts(self) -> ContractService:
        return ContractService(self.stores.contracts, self.bus, self.config.contracts_source)


def _create_aws_services(config: PropFlowConfig) -> Services:
    """Build boto3-backed collaborators."""
    from propflow.engine.bus import EventBridgeBus
    from propflow.engine.queue import SQSQueue
    from propflow.services.moderation import AWSModerationService
    from propflow.services.tokens import StepFunctionsTaskTokens
    from propflow.storage.config import create_stores

    region = config.aws_region
    return Services(
        config=config,
        stores=create_stores(config),
        bus=EventBridgeBus(config.event_bus_name, region=region),
        tokens=StepFunctionsTaskTokens(region=region),
        moderation=AWSModerationService(
            config.images_bucket, language_code=config.language_code, region=region
        ),
        approvals_queue=(
            SQSQueue(config.approvals_queue_url, region=region)
            if config.approvals_queue_url
            else None
        ),
        contracts_queue=(
            SQSQueue(config.contracts_queue_url, region=region)
            if config.contracts_queue_url
            else None
        ),
    )


def configure_telemetry(config: PropFlowConfig) -> None:
    """Enable OpenTelemetry traces and metrics when the configuration asks for them."""
    from propflow.observability.metrics import MetricsConfig, configure_metrics
    from propflow.observability.tracing import TracingConfig, configure_tracing

    if config.enable_tracing:
        configure_tracing(
            TracingConfig(
                enabled=True,
                service_name=config.service_name,
                endpoint=config.telemetry_endpoint,
                exporter=config.telemetry_exporter,
            )
        )
    if config.enable_metrics:
        configure_metrics(
            MetricsConfig(
                enabled=True,
                service_name=config.service_name,
                endpoint=config.telemetry_endpoint,
                exporter=config.telemetry_exporter,
            )
        )


def init_services(config: PropFlowConfig | None = None) -> Services:
    """
    Build the collaborators for a configuration.

    Args:
        config: Configuration; defaults to get_config()

    Returns:
        Services for the configured backend

    Raises:
        ValueError: If the backend is unknown
    """
    config = config or get_config()
    logger.debug(f"Initialising services for backend {config.backend}")
    configure_telemetry(config)

    if config.backend == "memory":
        from propflow.runtime.local import LocalRuntime

        return LocalRuntime(config).services
    elif config.backend == "aws":
        return _create_aws_services(config)
    else:
        raise ValueError(f"Unknown backend: {config.backend}")


# Global singleton
_services: Services | None = None


def get_services() -> Services:
    """Get the process-wide services, initialising them on first use."""
    global _services
    if _services is None:
        _services = init_services()
    return _services


def set_services(services: Services) -> None:
    """Replace the process-wide services (tests, local runtime)."""
    global _services
    _services = services


def reset_services() -> None:
    """
    Forget the process-wide services.

    Primarily used for testing.
    """
    global _services
    _services = None


def lambda_entry(handler_cls: type) -> Callable[[dict[str, Any], Any], Any]:
    """
    Build the module-level callable Lambda invokes for a handler class.

    Services and the handler are created on the first invocation and reused
    by warm invocations.

    Example:
        lambda_handler = lambda_entry(ContractStatusChangedHandler)
    """
    handler = None

    def entry(event: dict[str, Any], context: Any = None) -> Any:
        nonlocal handler
        if handler is None:
            handler = handler_cls(get_services())
        return handler(event, context)

    entry.__name__ = f"{handler_cls.__name__}_entry"
    entry.__doc__ = handler_cls.__doc__
    return entry
