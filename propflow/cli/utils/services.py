"""Services construction for CLI commands."""

import json
from pathlib import Path
from typing import Any

import click

from propflow.config import configure, get_config
from propflow.runtime.services import Services, init_services, set_services


def load_listings_file(path: str) -> list[dict[str, Any]]:
    """
    Read listings from a JSON file holding a list of objects.

    Raises:
        click.BadParameter: If the file is not a JSON list
    """
    data = json.loads(Path(path).read_text())
    if not isinstance(data, list):
        raise click.BadParameter(f"{path} must contain a JSON list of listings")
    return data


async def create_services(ctx: click.Context) -> Services:
    """
    Build services for the backend selected on the command line.

    With the memory backend every invocation starts empty; ``--seed``
    preloads the search projection from a listings file.
    """
    backend = ctx.obj.get("backend")
    if backend:
        configure(backend=backend)

    services = init_services(get_config())
    set_services(services)

    seed = ctx.obj.get("seed")
    if seed:
        await services.publication.load_listings(load_listings_file(seed))
    return services
