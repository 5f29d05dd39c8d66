"""
Read side of the search projection.

Only APPROVED listings are ever returned. A listing that exists but is not
approved is indistinguishable from one that does not exist.
"""

from loguru import logger

from propflow.core.exceptions import PropertyNotFoundError
from propflow.core.keys import partition_key, sort_key
from propflow.storage.base import PropertyStore
from propflow.storage.schemas import PropertyRecord, PropertyStatus


class PropertySearchService:
    """
    Query approved listings by city, street or exact address.

    Example:
        >>> search = PropertySearchService(store)
        >>> await search.list_by_city("usa", "anytown")
        [PropertyRecord(pk='PROPERTY#usa#anytown', sk='main-street#222', ...)]
    """

    def __init__(self, store: PropertyStore) -> None:
        self.store = store

    async def list_by_city(self, country: str, city: str) -> list[PropertyRecord]:
        """Approved listings in a city, in sort key order."""
        rows = await self.store.query_properties(
            partition_key(country, city),
            status=PropertyStatus.APPROVED.value,
        )
        return self._approved_only(rows)

    async def list_by_street(self, country: str, city: str, street: str) -> list[PropertyRecord]:
        """Approved listings whose sort key starts with the street."""
        rows = await self.store.query_properties(
            partition_key(country, city),
            sk_prefix=sort_key(street),
            status=PropertyStatus.APPROVED.value,
        )
        return self._approved_only(rows)

    async def property_details(
        self, country: str, city: str, street: str, number: str
    ) -> PropertyRecord:
        """
        A single approved listing.

        Raises:
            PropertyNotFoundError: If the listing is absent or not approved
        """
        pk = partition_key(country, city)
        sk = sort_key(street, number)
        row = await self.store.get_property(pk, sk)
        if row is None:
            raise PropertyNotFoundError("No property found", pk=pk, sk=sk)
        if not row.is_approved:
            logger.warning(f"Property {pk}/{sk} is NOT APPROVED", status=row.status)
            raise PropertyNotFoundError("No property found", pk=pk, sk=sk)
        return row

    @staticmethod
    def _approved_only(rows: list[PropertyRecord]) -> list[PropertyRecord]:
        approved = []
        for row in rows:
            if row.is_approved:
                approved.append(row)
            else:
                logger.warning(f"Property {row.pk}/{row.sk} is NOT APPROVED", status=row.status)
        return approved
