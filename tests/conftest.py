"""Shared fixtures for propflow tests."""

from typing import Any

import pytest
from loguru import logger

from propflow.config import PropFlowConfig, reset_config
from propflow.runtime.local import LocalRuntime
from propflow.runtime.services import reset_services
from propflow.services.moderation import KeywordModerationService


def _make_listing(number: str = "111", **overrides: Any) -> dict[str, Any]:
    """A listing as accepted by PublicationService.load_listings()."""
    listing = {
        "country": "usa",
        "city": "anytown",
        "street": "main-street",
        "number": number,
        "description": "Bright family home with a lovely garden",
        "contract": "sale",
        "listprice": 200000,
        "currency": "USD",
        "images": [f"property_images/prop{number}_exterior1.jpg"],
        "status": "NEW",
    }
    listing.update(overrides)
    return listing


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset global configuration and services between tests."""
    reset_config()
    reset_services()
    logger.enable("propflow")
    yield
    reset_config()
    reset_services()


@pytest.fixture
def make_listing():
    """Factory for listings in usa/anytown/main-street."""
    return _make_listing


@pytest.fixture
def config():
    """Configuration for the in-memory backend."""
    return PropFlowConfig(backend="memory")


@pytest.fixture
def moderation():
    """Keyword moderation flagging one well-known image."""
    return KeywordModerationService(flagged_images={"property_images/flagged.jpg"})


@pytest.fixture
def runtime(config, moderation):
    """A fully wired local runtime."""
    return LocalRuntime(config, moderation=moderation)


@pytest.fixture
def services(runtime):
    """Services of the local runtime."""
    return runtime.services
