"""HTTP API server command."""

import os
from typing import Optional

import click

from propflow.api.config import settings
from propflow.cli.output.formatters import print_info


@click.command(name="serve")
@click.option("--host", default=None, help=f"Bind address (default: {settings.host})")
@click.option("--port", type=int, default=None, help=f"Bind port (default: {settings.port})")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@click.pass_context
def serve(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    reload: bool,
) -> None:
    """
    Serve the search and command HTTP API with uvicorn.

    The global --backend and --seed options carry over to the server.

    Examples:

        propflow --seed listings.json serve --port 8080
    """
    import uvicorn

    # Passed through the environment so reloaded workers see them too
    if ctx.obj.get("backend"):
        os.environ["PROPFLOW_BACKEND"] = ctx.obj["backend"]
    if ctx.obj.get("seed"):
        os.environ["PROPFLOW_API_SEED_FILE"] = os.path.abspath(ctx.obj["seed"])
        settings.seed_file = os.environ["PROPFLOW_API_SEED_FILE"]

    host = host or settings.host
    port = port or settings.port
    print_info(f"Serving propflow API on http://{host}:{port}")
    uvicorn.run(
        "propflow.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="debug" if ctx.obj["verbose"] else "info",
    )
