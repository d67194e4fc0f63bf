from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TariffTier(str, Enum):
    A = "A"  # day
    B = "B"  # night / weekend
    C = "C"
    D = "D"


class Coordinate(ApiModel):
    lat: float
    lng: float


class AddressCandidate(ApiModel):
    label: str
    street: Optional[str] = None
    street_number: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lat: float
    lng: float


class KmRates(ApiModel):
    A: int = Field(ge=0)
    B: int = Field(ge=0)
    C: int = Field(ge=0)
    D: int = Field(ge=0)


class TariffConfig(ApiModel):
    """One immutable snapshot of the tariff configuration (amounts in cents)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    base_charge_cents: int = Field(ge=0)
    km_cents: KmRates
    wait_per_hour_cents: int = Field(ge=0)
    baggage_fee_cents: int = Field(ge=0)
    fifth_passenger_cents: int = Field(ge=0)
    version: int = 0
    updated_at: Optional[datetime] = None


class RideExtras(ApiModel):
    fifth_passenger: bool = False
    baggage_count: int = Field(default=0, ge=0)
    wait_minutes: int = Field(default=0, ge=0)


class QuoteRequest(ApiModel):
    pickup: Optional[Coordinate] = None
    dropoff: Optional[Coordinate] = None
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    tariff: TariffTier = TariffTier.A
    passengers: int = 1
    baggage_count: int = 0
    wait_minutes: int = 0
    # None means "derive from passengers"
    fifth_passenger: Optional[bool] = None


class DistanceEstimate(ApiModel):
    distance_km: float = Field(ge=0)
    duration_minutes: float = Field(ge=0)
    approximate: bool = False


class Quote(ApiModel):
    distance_km: float = Field(ge=0)
    duration_minutes: float = Field(ge=0)
    price_euros: float = Field(ge=0)
    tariff: TariffTier
    approximate: bool = False


class Address(ApiModel):
    id: str
    label: str
    street: Optional[str] = None
    street_number: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class FeaturedPoi(ApiModel):
    id: str
    label: str
    order: int = 0
    dropoff_address_id: Optional[str] = None
    # derived, owned by the price refresher
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    price_cents: Optional[int] = None


class FeaturedTrip(ApiModel):
    id: str
    title: str
    pickup_label: Optional[str] = None
    pickup_address_id: Optional[str] = None
    base_price_cents: Optional[int] = None
    active: bool = True
    poi_destinations: List[FeaturedPoi] = Field(default_factory=list)


# ---- HTTP payloads ----


class QuoteIn(ApiModel):
    pickup: Optional[Coordinate] = None
    dropoff: Optional[Coordinate] = None
    distance_km: Optional[float] = None
    duration_minutes: Optional[float] = None
    tariff: Optional[TariffTier] = None
    passengers: int = 1
    baggage_count: int = 0
    wait_minutes: int = 0
    fifth_passenger: Optional[bool] = None
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD, local time")
    time: Optional[str] = Field(default=None, description="HH:MM, local time")


class QuoteOut(ApiModel):
    distance_km: float
    duration_minutes: float
    price: float
    tariff: TariffTier
    approximate: bool


class DistanceIn(ApiModel):
    pickup: Coordinate
    dropoff: Coordinate


class GeocodeIn(ApiModel):
    address: str = ""


class CandidatesOut(ApiModel):
    results: List[AddressCandidate]


class TariffValues(ApiModel):
    """Tariff amounts in euros, as edited in the admin panel."""

    base_charge: float = Field(ge=0)
    km_a: float = Field(ge=0)
    km_b: float = Field(ge=0)
    km_c: float = Field(ge=0)
    km_d: float = Field(ge=0)
    wait_per_hour: float = Field(ge=0)
    baggage_fee: float = Field(ge=0)
    fifth_passenger: float = Field(ge=0)


class TariffOut(TariffValues):
    version: int
    updated_at: Optional[datetime] = None


class RefreshFailureOut(ApiModel):
    trip_id: str
    reason: str
    state: str


class RefreshReportOut(ApiModel):
    succeeded: List[str]
    failed: List[RefreshFailureOut]


class TariffUpdateOut(ApiModel):
    config: TariffOut
    refresh: Optional[RefreshReportOut] = None
