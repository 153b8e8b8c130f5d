import logging
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence

from servicemarket.data import SUBURBS
from servicemarket.models import CatalogLocation, ListingLocation, SeedSummary
from servicemarket.services.randomizer import AttributeRandomizer

logger = logging.getLogger(__name__)

CUSTOMER_COUNT = 5
LISTINGS_PER_PROVIDER = 3
SLOTS_PER_LISTING = 8


class SeedGateway(Protocol):
    def create_user(self, *, email: str, role: str) -> str: ...

    def create_profile(self, *, user_id: str, display_name: str, bio: str, gst: bool) -> str: ...

    def create_listing(
        self,
        *,
        profile_id: str,
        title: str,
        category: str,
        description: str,
        price_per_hour: int,
        location: ListingLocation,
    ) -> str: ...

    def create_availability_slot(self, *, listing_id: str, starts_at: datetime, ends_at: datetime) -> str: ...

    def close(self) -> None: ...


def customer_email(index: int) -> str:
    return f"customer{index}@test.com"


def provider_email(location_name: str) -> str:
    return f"{location_name.lower().replace(' ', '')}provider@test.com"


def _local_now() -> datetime:
    return datetime.now().astimezone()


class MarketplaceSeeder:
    """Creates customers, providers, profiles, listings and slots in dependency order.

    Every child row is written with the identifier its parent's create call
    returned. Nothing is caught here: the first failing write aborts the run
    and rows created before it are left as they are.
    """

    def __init__(
        self,
        gateway: SeedGateway,
        randomizer: Optional[AttributeRandomizer] = None,
        catalog: Sequence[CatalogLocation] = SUBURBS,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.gateway = gateway
        self.randomizer = randomizer or AttributeRandomizer()
        self.catalog = tuple(catalog)
        self.clock = clock

    def seed(self) -> SeedSummary:
        logger.info("Start seeding...")
        summary = SeedSummary()

        self._seed_customers(summary)
        logger.info("%d customers created.", summary.customers)

        for location in self.catalog:
            profile_id = self._seed_provider(location, summary)
            for _ in range(LISTINGS_PER_PROVIDER):
                listing_id = self._seed_listing(profile_id, location, summary)
                for _ in range(SLOTS_PER_LISTING):
                    self._seed_slot(listing_id, summary)
        logger.info("Providers, listings, and slots created.")

        logger.info("Seeding finished.")
        return summary

    def _seed_customers(self, summary: SeedSummary) -> None:
        for index in range(CUSTOMER_COUNT):
            user_id = self.gateway.create_user(email=customer_email(index), role="CUSTOMER")
            summary.customer_ids.append(user_id)
            summary.customers += 1

    def _seed_provider(self, location: CatalogLocation, summary: SeedSummary) -> str:
        user_id = self.gateway.create_user(email=provider_email(location.name), role="PROVIDER")
        summary.provider_ids.append(user_id)
        summary.providers += 1

        profile_id = self.gateway.create_profile(
            user_id=user_id,
            display_name=self.randomizer.display_name(),
            bio=f"Experienced professional providing top-quality services in {location.name}.",
            gst=self.randomizer.gst_registered(),
        )
        summary.profile_ids.append(profile_id)
        summary.profiles += 1
        return profile_id

    def _seed_listing(self, profile_id: str, location: CatalogLocation, summary: SeedSummary) -> str:
        category = self.randomizer.category()
        listing_id = self.gateway.create_listing(
            profile_id=profile_id,
            title=f"{category} service in {location.name}",
            category=category,
            description=f"Professional {category} services available. Book now for a free quote.",
            price_per_hour=self.randomizer.price_per_hour(),
            location=ListingLocation(lat=location.lat, lng=location.lng, address=location.name),
        )
        summary.listing_ids.append(listing_id)
        summary.listings += 1
        return listing_id

    def _seed_slot(self, listing_id: str, summary: SeedSummary) -> None:
        starts_at, ends_at = self.randomizer.slot_window(self.clock())
        self.gateway.create_availability_slot(listing_id=listing_id, starts_at=starts_at, ends_at=ends_at)
        summary.slots += 1


def run_seed(
    gateway: SeedGateway,
    randomizer: Optional[AttributeRandomizer] = None,
    catalog: Sequence[CatalogLocation] = SUBURBS,
    clock: Callable[[], datetime] = _local_now,
) -> SeedSummary:
    """Seed through ``gateway`` and release it exactly once, whatever happens."""
    try:
        return MarketplaceSeeder(gateway, randomizer=randomizer, catalog=catalog, clock=clock).seed()
    finally:
        gateway.close()
