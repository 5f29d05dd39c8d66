"""propflow CLI - Inspect and drive the property listing services."""

import click
from typing import Optional

from loguru import logger

from propflow import __version__


@click.group()
@click.version_option(version=__version__, prog_name="propflow")
@click.option(
    "--backend",
    type=click.Choice(["memory", "aws"], case_sensitive=False),
    envvar="PROPFLOW_BACKEND",
    help="Where stores, bus and queues live (default: memory)",
)
@click.option(
    "--seed",
    type=click.Path(exists=True, dir_okay=False),
    envvar="PROPFLOW_SEED_FILE",
    help="JSON listings file loaded into the search projection before the command runs",
)
@click.option(
    "--output",
    type=click.Choice(["table", "json", "plain"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.pass_context
def main(
    ctx: click.Context,
    backend: Optional[str],
    seed: Optional[str],
    output: str,
    verbose: bool,
) -> None:
    """
    propflow CLI - Inspect and drive the property listing services.

    Examples:

        # Search approved listings in a city
        propflow --seed listings.json properties search usa anytown

        # Request publication approval and watch the workflow run
        propflow --seed listings.json approvals request usa/anytown/main-street/111

        # Look up a contract status in DynamoDB
        propflow --backend aws contracts status usa/anytown/main-street/111

        # Serve the HTTP API
        propflow serve --port 8000

    Configuration:

        Table names, bus name and queue URLs come from propflow.config.yaml
        or the environment variables the Lambda functions use
        (CONTRACT_STATUS_TABLE, PROPERTIES_TABLE, EVENT_BUS, ...).
    """
    if verbose:
        logger.enable("propflow")
        logger.info("Verbose logging enabled")
    else:
        logger.disable("propflow")

    ctx.ensure_object(dict)
    ctx.obj["backend"] = backend.lower() if backend else None
    ctx.obj["seed"] = seed
    ctx.obj["output"] = output
    ctx.obj["verbose"] = verbose


# Import and register commands
from propflow.cli.commands.approvals import approvals
from propflow.cli.commands.contracts import contracts
from propflow.cli.commands.properties import properties
from propflow.cli.commands.serve import serve

main.add_command(properties)
main.add_command(contracts)
main.add_command(approvals)
main.add_command(serve)


__all__ = ["main"]
