"""
Write side of the search projection.

PublicationService asks the properties context to approve a listing and
applies the evaluation it sends back.
"""

from typing import Any, Iterable

from loguru import logger

from propflow.core.exceptions import PropertyNotFoundError
from propflow.core.keys import PropertyKey, parse_property_id, partition_key, property_keys, sort_key
from propflow.engine.bus import EventBus
from propflow.engine.events import (
    EventEnvelope,
    PublicationEvaluationCompleted,
    create_publication_approval_requested_event,
)
from propflow.observability.metrics import APPROVALS_REQUESTED, increment_counter
from propflow.storage.base import PropertyStore
from propflow.storage.schemas import PropertyRecord, PropertyStatus


class PublicationService:
    """
    Approval requests and evaluation results for listings.

    Example:
        >>> publication = PublicationService(store, bus, source="propflow.web")
        >>> await publication.request_approval("usa/anytown/main-street/111")
    """

    def __init__(self, store: PropertyStore, bus: EventBus, source: str) -> None:
        self.store = store
        self.bus = bus
        self.source = source

    async def apply_evaluation(self, detail: PublicationEvaluationCompleted) -> PropertyKey:
        """
        Set the projection status of a listing to the evaluation result.

        Only ``status`` is written; all other attributes are left alone.

        Raises:
            InvalidPropertyIdError: If the property id has fewer than four segments
        """
        key = property_keys(detail.property_id)
        await self.store.update_property_status(key.pk, key.sk, detail.evaluation_result)
        logger.info(
            f"Publication status set to {detail.evaluation_result}",
            property_id=detail.property_id,
            pk=key.pk,
            sk=key.sk,
        )
        return key

    async def request_approval(self, property_id: str) -> EventEnvelope | None:
        """
        Publish PublicationApprovalRequested for a listing.

        Returns:
            The published event, or None if the listing is already approved

        Raises:
            InvalidPropertyIdError: If the property id is malformed
            PropertyNotFoundError: If the listing is not in the projection
            EventPublishError: If the bus rejects the event
        """
        address = parse_property_id(property_id)
        key = property_keys(property_id)
        row = await self.store.get_property(key.pk, key.sk)
        if row is None:
            raise PropertyNotFoundError(
                f"No property found for {property_id}", property_id=property_id
            )

        if row.is_approved:
            logger.info("Property already approved, nothing to request", property_id=property_id)
            return None

        event = create_publication_approval_requested_event(
            source=self.source,
            property_id=property_id,
            address={
                "country": row.country or address.country,
                "city": row.city or address.city,
                "street": row.street or address.street,
                "number": row.number or address.number,
            },
            description=row.description,
            images=row.images,
            listprice=row.listprice,
            currency=row.currency,
        )
        await self.bus.put_event(event)
        increment_counter(APPROVALS_REQUESTED)
        logger.info("Publication approval requested", property_id=property_id, event_id=event.id)
        return event

    async def load_listings(self, listings: Iterable[dict[str, Any]]) -> int:
        """
        Seed the projection with listings.

        Each listing holds ``country``, ``city``, ``street`` and ``number``
        plus any other projection attribute. Listings default to NEW.

        Returns:
            Number of listings written
        """
        count = 0
        for listing in listings:
            record = PropertyRecord(
                pk=partition_key(listing["country"], listing["city"]),
                sk=sort_key(listing["street"], str(listing["number"])),
                country=listing["country"],
                city=listing["city"],
                street=listing["street"],
                number=str(listing["number"]),
                description=listing.get("description", ""),
                contract=listing.get("contract"),
                listprice=listing.get("listprice"),
                currency=listing.get("currency"),
                status=listing.get("status", PropertyStatus.NEW.value),
                images=list(listing.get("images") or []),
            )
            await self.store.put_property(record)
            count += 1
        logger.info(f"Loaded {count} listings into the search projection")
        return count
