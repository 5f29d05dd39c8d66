"""Tests for the logging module."""

import json
import os
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest
from loguru import logger

from propflow.observability.logging import (
    _format_for_json,
    configure_logging,
    configure_logging_from_env,
    execution_logging_context,
    handler_logging_context,
)


def log_record(message: str, extra: dict) -> dict:
    level = MagicMock()
    level.name = "INFO"
    return {
        "time": datetime(2025, 1, 15, 10, 30, 45, tzinfo=UTC),
        "level": level,
        "message": message,
        "name": "propflow.handlers.base",
        "function": "invoke",
        "line": 42,
        "extra": extra,
        "exception": None,
    }


@pytest.fixture
def captured():
    """Collect the extra dict of every record logged while the test runs."""
    records: list[dict] = []
    sink_id = logger.add(lambda message: records.append(message.record["extra"].copy()))
    yield records
    logger.remove(sink_id)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_configure_debug_level(self):
        configure_logging(level="DEBUG")
        # Should not raise

    def test_configure_json_logs(self):
        configure_logging(json_logs=True)
        # Should not raise

    def test_configure_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "propflow.log"
        configure_logging(log_file=str(log_file))
        assert log_file.parent.exists()

    def test_configure_from_env_json_format(self):
        with patch.dict(
            os.environ,
            {"PROPFLOW_LOG_FORMAT": "json", "PROPFLOW_LOG_LEVEL": "warning"},
            clear=True,
        ):
            configure_logging_from_env()
        # Should not raise


class TestJsonFormatting:
    """Tests for JSON log formatting."""

    def test_format_basic_log(self):
        parsed = json.loads(_format_for_json(log_record("Contract status recorded", {})))

        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Contract status recorded"
        assert parsed["logger"] == "propflow.handlers.base"
        assert parsed["line"] == 42
        assert "context" not in parsed

    def test_context_and_extra_split(self):
        """Test context keys are grouped apart from other bound values."""
        record = log_record(
            "Registered wait",
            {
                "handler": "wait_for_contract_approval",
                "property_id": "usa/anytown/main-street/111",
                "contract_status": "DRAFT",
                "_context": " | ignored",
            },
        )

        parsed = json.loads(_format_for_json(record, show_context=True))

        assert parsed["context"] == {
            "handler": "wait_for_contract_approval",
            "property_id": "usa/anytown/main-street/111",
        }
        assert parsed["extra"] == {"contract_status": "DRAFT"}

    def test_context_hidden(self):
        record = log_record("x", {"handler": "property_search"})
        assert "context" not in json.loads(_format_for_json(record, show_context=False))


class TestContextBinding:
    """Tests for context binding helpers."""

    def test_handler_logging_context(self, captured):
        with handler_logging_context("property_search", "req-1"):
            logger.info("inside")
        logger.info("outside")

        assert captured[0]["handler"] == "property_search"
        assert captured[0]["request_id"] == "req-1"
        assert "handler" not in captured[1]

    def test_execution_logging_context(self, captured):
        with execution_logging_context("exec_1", "usa/anytown/main-street/111"):
            logger.info("inside")

        assert captured[0]["execution_id"] == "exec_1"
        assert captured[0]["property_id"] == "usa/anytown/main-street/111"
