"""Contract commands."""

from typing import Any

import click

from propflow.cli.output.formatters import (
    format_json,
    format_key_value,
    print_error,
    print_info,
    print_output,
    print_success,
)
from propflow.cli.utils.async_helpers import async_command
from propflow.cli.utils.services import create_services
from propflow.core.exceptions import ContractStatusNotFoundError
from propflow.runtime.services import Services


@click.group(name="contracts")
def contracts() -> None:
    """Submit contracts and inspect contract status."""
    pass


@contracts.command(name="status")
@click.argument("property_id")
@click.pass_context
@async_command
async def contract_status(ctx: click.Context, property_id: str) -> None:
    """
    Show the contract status recorded for a property.

    Examples:

        propflow --backend aws contracts status usa/anytown/main-street/111
    """
    output = ctx.obj["output"]
    services = await create_services(ctx)

    try:
        record = await services.contract_status.check_contract_exists(property_id)
    except ContractStatusNotFoundError as e:
        print_error(e.message)
        raise click.Abort()

    if output == "json":
        format_json(record.to_dict())
    else:
        format_key_value(record.to_dict(), title="Contract Status")


@contracts.command(name="list")
@click.pass_context
@async_command
async def list_contract_statuses(ctx: click.Context) -> None:
    """List every contract status record."""
    output = ctx.obj["output"]
    services = await create_services(ctx)

    records = await services.contract_status.list_statuses()
    if not records:
        print_info("No contract status records found")
        return

    rows = [
        {
            "property_id": record.property_id,
            "contract_id": record.contract_id,
            "contract_status": record.contract_status,
            "waiting": "yes" if record.is_waiting else "no",
            "version": record.version,
        }
        for record in records
    ]
    print_output(
        output,
        rows,
        ["property_id", "contract_id", "contract_status", "waiting", "version"],
        title="Contract Statuses",
    )


async def _submit(
    ctx: click.Context, services: Services, method: str, payload: dict[str, Any]
) -> None:
    if services.contracts_queue is None:
        print_error("No contracts queue configured (set CONTRACTS_QUEUE_URL)")
        raise click.Abort()

    message_id = await services.contracts_queue.send_message(payload, {"HttpMethod": method})
    print_success(f"Contract command {method} enqueued ({message_id})")

    if services.runtime is not None:
        await services.runtime.drain()
        try:
            record = await services.contract_status.check_contract_exists(payload["property_id"])
        except ContractStatusNotFoundError:
            return
        print_info(f"Contract status is now {record.contract_status}")


@contracts.command(name="create")
@click.argument("property_id")
@click.option("--seller", "seller_name", default="", help="Seller name")
@click.option("--country", default="", help="Address country")
@click.option("--city", default="", help="Address city")
@click.option("--street", default="", help="Address street")
@click.option("--number", default="", help="Address number")
@click.pass_context
@async_command
async def create_contract(
    ctx: click.Context,
    property_id: str,
    seller_name: str,
    country: str,
    city: str,
    street: str,
    number: str,
) -> None:
    """
    Create a DRAFT contract for a property.

    Examples:

        propflow contracts create usa/anytown/main-street/111 --seller "John Doe"
    """
    services = await create_services(ctx)
    payload: dict[str, Any] = {"property_id": property_id, "seller_name": seller_name}
    if any((country, city, street, number)):
        payload["address"] = {
            "country": country,
            "city": city,
            "street": street,
            "number": number,
        }
    await _submit(ctx, services, "POST", payload)


@contracts.command(name="approve")
@click.argument("property_id")
@click.pass_context
@async_command
async def approve_contract(ctx: click.Context, property_id: str) -> None:
    """
    Approve the DRAFT contract of a property.

    Examples:

        propflow contracts approve usa/anytown/main-street/111
    """
    services = await create_services(ctx)
    await _submit(ctx, services, "PUT", {"property_id": property_id})
