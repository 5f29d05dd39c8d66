"""
Composite key derivation for the search projection.

A property identifier looks like ``country/city/street/number`` and is
treated as an opaque key everywhere except here, where it is split into the
partition key ``PROPERTY#{country}#{city}`` and sort key ``{street}#{number}``.
"""

from dataclasses import dataclass

from propflow.core.exceptions import InvalidPropertyIdError

PK_PREFIX = "PROPERTY#"


@dataclass(frozen=True)
class PropertyKey:
    """Partition/sort key pair of a search projection row."""

    pk: str
    sk: str


@dataclass(frozen=True)
class PropertyAddress:
    """The four address segments of a property identifier."""

    country: str
    city: str
    street: str
    number: str


def normalise(value: str) -> str:
    """Lower-case a key segment and replace spaces with dashes."""
    return value.strip().replace(" ", "-").lower()


def parse_property_id(property_id: str) -> PropertyAddress:
    """
    Split a property identifier into its address segments.

    Raises:
        InvalidPropertyIdError: If fewer than four segments are present
    """
    components = (property_id or "").split("/")
    if len(components) < 4:
        raise InvalidPropertyIdError(property_id)
    country, city, street, number = components[:4]
    return PropertyAddress(country=country, city=city, street=street, number=number)


def partition_key(country: str, city: str) -> str:
    return f"{PK_PREFIX}{normalise(country)}#{normalise(city)}"


def sort_key(street: str, number: str | None = None) -> str:
    if number is None:
        return normalise(street)
    return f"{normalise(street)}#{normalise(number)}"


def property_keys(property_id: str) -> PropertyKey:
    """
    Derive the search projection key for a property identifier.

    Example:
        >>> property_keys("usa/anytown/main street/111")
        PropertyKey(pk='PROPERTY#usa#anytown', sk='main-street#111')
    """
    address = parse_property_id(property_id)
    return PropertyKey(
        pk=partition_key(address.country, address.city),
        sk=sort_key(address.street, address.number),
    )
