from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


UserRole = Literal["CUSTOMER", "PROVIDER"]


class CatalogLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    lat: float
    lng: float


class ListingLocation(BaseModel):
    lat: float
    lng: float
    address: str


class User(BaseModel):
    id: str
    email: str
    role: UserRole
    created_at: str
    updated_at: str


class Profile(BaseModel):
    id: str
    user_id: str
    display_name: str
    bio: str
    gst: bool
    created_at: str
    updated_at: str


class ProviderView(BaseModel):
    user: User
    profile: Optional[Profile] = None


class Listing(BaseModel):
    id: str
    provider_id: str
    title: str
    category: str
    description: str
    price_per_hour: int = Field(ge=0)
    location: ListingLocation
    created_at: str
    updated_at: str


class AvailabilitySlot(BaseModel):
    id: str
    listing_id: str
    starts_at: str
    ends_at: str
    created_at: str
    updated_at: str


class SeedSummary(BaseModel):
    customers: int = 0
    providers: int = 0
    profiles: int = 0
    listings: int = 0
    slots: int = 0
    customer_ids: list[str] = Field(default_factory=list)
    provider_ids: list[str] = Field(default_factory=list)
    profile_ids: list[str] = Field(default_factory=list)
    listing_ids: list[str] = Field(default_factory=list)

    @property
    def total_writes(self) -> int:
        return self.customers + self.providers + self.profiles + self.listings + self.slots


class ProbeResult(BaseModel):
    outcome: Literal["table_missing", "query_failed", "rows_returned"]
    status_code: Optional[int] = None
    message: str = ""
    rows: list[Dict[str, Any]] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome != "query_failed"
