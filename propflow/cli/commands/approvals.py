"""Publication approval commands."""

import click

from propflow.cli.output.formatters import (
    print_error,
    print_info,
    print_output,
    print_success,
    print_warning,
)
from propflow.cli.utils.async_helpers import async_command
from propflow.cli.utils.services import create_services
from propflow.core.keys import property_keys


@click.group(name="approvals")
def approvals() -> None:
    """Request publication approval for listings."""
    pass


@approvals.command(name="request")
@click.argument("property_id")
@click.option(
    "--contract",
    type=click.Choice(["none", "draft", "approved"], case_sensitive=False),
    default="none",
    help="Memory backend only: create the contract first, and optionally approve it",
)
@click.pass_context
@async_command
async def request_approval(ctx: click.Context, property_id: str, contract: str) -> None:
    """
    Request publication approval for a property.

    With the memory backend the whole choreography runs in-process and the
    resulting workflow executions are shown.

    Examples:

        # Enqueue a request on the deployed approvals queue
        propflow --backend aws approvals request usa/anytown/main-street/111

        # Run the workflow locally against an approved contract
        propflow --seed listings.json approvals request \\
            usa/anytown/main-street/111 --contract approved
    """
    output = ctx.obj["output"]
    services = await create_services(ctx)
    runtime = services.runtime
    contract = contract.lower()

    if contract != "none":
        if runtime is None:
            print_warning("--contract is ignored outside the memory backend")
        else:
            await runtime.submit_contract("POST", {"property_id": property_id})
            if contract == "approved":
                await runtime.submit_contract("PUT", {"property_id": property_id})

    if services.approvals_queue is None:
        print_error("No approvals queue configured (set APPROVALS_QUEUE_URL)")
        raise click.Abort()

    message_id = await services.approvals_queue.send_message({"property_id": property_id})
    print_success(f"Approval requested for {property_id} ({message_id})")

    if runtime is None:
        return

    await runtime.drain()
    executions = await runtime.state_machine.list_executions(property_id=property_id)
    if not executions:
        print_info("No workflow started (unknown listing or already approved)")
        return

    rows = [
        {
            "execution_id": execution.execution_id,
            "status": execution.status.value,
            "current_state": execution.current_state,
            "error": execution.error,
        }
        for execution in executions
    ]
    print_output(
        output,
        rows,
        ["execution_id", "status", "current_state", "error"],
        title="Approval Workflow",
    )

    keys = property_keys(property_id)
    listing = await services.stores.properties.get_property(keys.pk, keys.sk)
    if listing is not None:
        print_info(f"Listing status is {listing.status}")

