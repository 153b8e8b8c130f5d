from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from servicemarket.models import AvailabilitySlot, Listing, ProviderView
from servicemarket.services.seed_store import SeedStore, SeedStoreError, SeedStoreNotFoundError, default_db_path

router = APIRouter(tags=["listings"])


def get_seed_store() -> Iterator[SeedStore]:
    """Open the seeded database read-only; browsing never creates or migrates it."""
    try:
        store = SeedStore(db_path=default_db_path(), read_only=True)
    except SeedStoreNotFoundError as exc:
        raise HTTPException(status_code=503, detail=f"{exc}. Run scripts/seed.py first.")
    with store:
        yield store


def _raise_store_http_error(exc: SeedStoreError) -> None:
    if isinstance(exc, SeedStoreNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    raise HTTPException(status_code=400, detail=str(exc))


@router.get("/providers", response_model=list[ProviderView])
def list_providers(store: SeedStore = Depends(get_seed_store)):
    return store.list_providers()


@router.get("/listings", response_model=list[Listing])
def list_listings(
    category: Optional[str] = Query(default=None),
    suburb: Optional[str] = Query(default=None),
    store: SeedStore = Depends(get_seed_store),
):
    return store.list_listings(category=category, suburb=suburb)


@router.get("/listings/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, store: SeedStore = Depends(get_seed_store)):
    try:
        return store.get_listing(listing_id)
    except SeedStoreError as exc:
        _raise_store_http_error(exc)


@router.get("/listings/{listing_id}/availability", response_model=list[AvailabilitySlot])
def get_listing_availability(listing_id: str, store: SeedStore = Depends(get_seed_store)):
    try:
        store.get_listing(listing_id)
    except SeedStoreError as exc:
        _raise_store_http_error(exc)
    return store.list_slots(listing_id)
