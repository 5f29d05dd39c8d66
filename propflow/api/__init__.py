"""HTTP API over the search projection and the command queues."""

from propflow.api.server import create_app

__all__ = ["create_app"]
