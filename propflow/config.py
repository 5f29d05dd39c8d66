"""
propflow configuration system.

Provides global configuration for table names, the event bus, event sources
and the execution backend.

Configuration is loaded in this priority order:
1. Values set via propflow.configure() (highest priority)
2. Environment variables (the names Lambda functions are deployed with)
3. Values from propflow.config.yaml in current directory
4. Default values

Usage:
    >>> import propflow
    >>> propflow.configure(backend="memory", event_bus_name="TestBus")
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Environment variable -> config attribute
_ENV_VARS: Dict[str, str] = {
    "PROPFLOW_BACKEND": "backend",
    "AWS_REGION": "aws_region",
    "CONTRACT_STATUS_TABLE": "contract_status_table",
    "PROPERTIES_TABLE": "properties_table",
    "CONTRACTS_TABLE": "contracts_table",
    "EVENT_BUS": "event_bus_name",
    "IMAGES_BUCKET": "images_bucket",
    "APPROVALS_QUEUE_URL": "approvals_queue_url",
    "CONTRACTS_QUEUE_URL": "contracts_queue_url",
    "SERVICE_NAMESPACE_CONTRACTS": "contracts_source",
    "SERVICE_NAMESPACE_PROPERTIES": "properties_source",
    "SERVICE_NAMESPACE_WEB": "web_source",
    "PROPFLOW_MAX_WRITE_ATTEMPTS": "max_write_attempts",
    "PROPFLOW_LOCAL_HISTORY_LIMIT": "local_history_limit",
    "PROPFLOW_TRACING": "enable_tracing",
    "PROPFLOW_METRICS": "enable_metrics",
    "PROPFLOW_TELEMETRY_EXPORTER": "telemetry_exporter",
    "OTEL_EXPORTER_OTLP_ENDPOINT": "telemetry_endpoint",
    "OTEL_SERVICE_NAME": "service_name",
}

_INT_FIELDS = {"max_write_attempts", "max_receive_count", "local_history_limit"}
_BOOL_FIELDS = {"enable_tracing", "enable_metrics"}


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load configuration from propflow.config.yaml in current directory.

    Returns:
        Configuration dictionary, empty dict if file not found
    """
    config_path = Path.cwd() / "propflow.config.yaml"
    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _load_env_config() -> Dict[str, Any]:
    """Collect configuration values from environment variables."""
    values: Dict[str, Any] = {}
    for env_name, attr in _ENV_VARS.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        if attr in _INT_FIELDS:
            values[attr] = int(raw)
        elif attr in _BOOL_FIELDS:
            values[attr] = raw.lower() in ("1", "true", "yes", "on")
        else:
            values[attr] = raw
    return values


@dataclass
class PropFlowConfig:
    """
    Global configuration for propflow.

    Attributes:
        backend: Where collaborators live ("memory" for the local runtime,
            "aws" for DynamoDB/EventBridge/SQS/Step Functions via boto3)
        aws_region: AWS region for boto3 clients (None = boto3 default chain)
        contract_status_table: Table holding one ContractStatusRecord per property
        properties_table: Search projection table (PK/SK)
        contracts_table: Contracts service table
        event_bus_name: EventBridge bus all domain events go through
        contracts_source / properties_source / web_source: Event sources
        images_bucket: S3 bucket holding listing images for moderation
        approvals_queue_url / contracts_queue_url: SQS queues (aws backend)
        language_code: Language passed to sentiment detection
        max_write_attempts: Compare-and-swap attempts before giving up
        max_receive_count: Local queue deliveries before dead-lettering
        local_history_limit: Published events and finished executions the
            local runtime keeps for inspection
        enable_tracing / enable_metrics: Export OpenTelemetry traces / metrics
        telemetry_exporter: "otlp" or "console"
        telemetry_endpoint: OTLP collector endpoint (None = exporter default)
        service_name: service.name resource attribute
    """

    backend: str = "memory"
    aws_region: Optional[str] = None

    contract_status_table: str = "ContractStatusTable"
    properties_table: str = "PropertiesTable"
    contracts_table: str = "ContractsTable"

    event_bus_name: str = "PropFlowBus"
    contracts_source: str = "propflow.contracts"
    properties_source: str = "propflow.properties"
    web_source: str = "propflow.web"

    images_bucket: Optional[str] = None
    approvals_queue_url: Optional[str] = None
    contracts_queue_url: Optional[str] = None
    language_code: str = "en"

    max_write_attempts: int = 3
    max_receive_count: int = 3
    local_history_limit: int = 1000

    enable_tracing: bool = False
    enable_metrics: bool = False
    telemetry_exporter: str = "otlp"
    telemetry_endpoint: Optional[str] = None
    service_name: str = "propflow"


def _config_from_sources() -> PropFlowConfig:
    """Create a PropFlowConfig from the YAML file and environment."""
    values: Dict[str, Any] = {}
    valid = {f.name for f in fields(PropFlowConfig)}

    for key, value in _load_yaml_config().items():
        if key in valid:
            values[key] = value
    values.update(_load_env_config())

    return PropFlowConfig(**values)


# Global singleton
_config: Optional[PropFlowConfig] = None


def configure(**kwargs: Any) -> None:
    """
    Configure propflow.

    Args:
        Any attribute of PropFlowConfig.

    Raises:
        ValueError: On an unknown option

    Example:
        >>> import propflow
        >>> propflow.configure(backend="aws", aws_region="eu-west-1")
    """
    config = get_config()

    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            valid_keys = [f for f in PropFlowConfig.__dataclass_fields__.keys()]
            raise ValueError(
                f"Unknown config option: {key}. Valid options: {', '.join(valid_keys)}"
            )


def get_config() -> PropFlowConfig:
    """
    Get the current configuration.

    If not yet configured, loads from propflow.config.yaml and the
    environment, otherwise returns the configured instance.

    Returns:
        Current PropFlowConfig instance
    """
    global _config
    if _config is None:
        _config = _config_from_sources()
    return _config


def reset_config() -> None:
    """
    Reset configuration to defaults.

    Primarily used for testing.
    """
    global _config
    _config = None
