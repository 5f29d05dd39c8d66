"""Search projection commands."""

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
from propflow.cli.utils.services import create_services, load_listings_file
from propflow.core.exceptions import PropertyNotFoundError

COLUMNS = ["country", "city", "street", "number", "listprice", "currency", "status"]


@click.group(name="properties")
def properties() -> None:
    """Load and search the published listings."""
    pass


@properties.command(name="load")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@async_command
async def load_properties(ctx: click.Context, file: str) -> None:
    """
    Load listings from a JSON file into the search projection.

    Examples:

        propflow --backend aws properties load listings.json
    """
    services = await create_services(ctx)

    try:
        count = await services.publication.load_listings(load_listings_file(file))
    except Exception as e:
        print_error(f"Failed to load listings: {e}")
        if ctx.obj["verbose"]:
            raise
        raise click.Abort()

    print_success(f"Loaded {count} listing(s) into {services.config.properties_table}")


@properties.command(name="search")
@click.argument("country")
@click.argument("city")
@click.argument("street", required=False)
@click.pass_context
@async_command
async def search_properties(
    ctx: click.Context,
    country: str,
    city: str,
    street: str | None,
) -> None:
    """
    List approved listings in a city, optionally narrowed to a street.

    Examples:

        propflow properties search usa anytown

        propflow properties search usa anytown main-street
    """
    output = ctx.obj["output"]
    services = await create_services(ctx)

    try:
        if street:
            rows = await services.search.list_by_street(country, city, street)
        else:
            rows = await services.search.list_by_city(country, city)
    except Exception as e:
        print_error(f"Search failed: {e}")
        if ctx.obj["verbose"]:
            raise
        raise click.Abort()

    if not rows:
        print_info("No approved listings found")
        return

    print_output(
        output,
        [row.to_public_dict() for row in rows],
        COLUMNS,
        title=f"Listings in {city}",
        plain_key="number",
    )


@properties.command(name="show")
@click.argument("country")
@click.argument("city")
@click.argument("street")
@click.argument("number")
@click.pass_context
@async_command
async def show_property(
    ctx: click.Context,
    country: str,
    city: str,
    street: str,
    number: str,
) -> None:
    """
    Show the details of one approved listing.

    Examples:

        propflow properties show usa anytown main-street 222
    """
    output = ctx.obj["output"]
    services = await create_services(ctx)

    try:
        record = await services.search.property_details(country, city, street, number)
    except PropertyNotFoundError:
        print_error(f"No approved listing at {country}/{city}/{street}/{number}")
        raise click.Abort()

    if output == "json":
        format_json(record.to_public_dict())
    else:
        format_key_value(record.to_public_dict(), title="Property")
