from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from taxi_pricing.domain.geocoder import Geocoder
from taxi_pricing.domain.models import (
    Coordinate,
    FeaturedPoi,
    FeaturedTrip,
    Quote,
    QuoteRequest,
    TariffConfig,
    TariffTier,
)
from taxi_pricing.domain.quotes import QuoteService
from taxi_pricing.domain.tariffs import to_cents
from taxi_pricing.repos.addresses_repo import AddressRepository
from taxi_pricing.repos.featured_trips_repo import FeaturedTripRepository
from taxi_pricing.repos.tariff_repo import TariffConfigStore

logger = logging.getLogger(__name__)


class TripState(str, Enum):
    PENDING_ADDRESS = "PENDING_ADDRESS"
    ADDRESS_RESOLVED = "ADDRESS_RESOLVED"
    QUOTED = "QUOTED"
    PERSISTED = "PERSISTED"
    ERRORED = "ERRORED"


@dataclass
class TripOutcome:
    trip_id: str
    state: TripState
    # last state reached before the error, for ERRORED outcomes
    failed_at: Optional[TripState] = None
    reason: Optional[str] = None


@dataclass
class RefreshFailure:
    trip_id: str
    reason: str
    state: TripState


@dataclass
class RefreshReport:
    config_version: int
    succeeded: List[str] = field(default_factory=list)
    failed: List[RefreshFailure] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "succeeded": list(self.succeeded),
            "failed": [
                {"trip_id": f.trip_id, "reason": f.reason, "state": f.state.value}
                for f in self.failed
            ],
        }


class FeaturedTripRefresher:
    """
    Re-prices every published featured trip against the latest tariff.

    Trips are independent: a failing trip is logged, reported and left with
    its previous prices, and the run moves on. Within a trip, every POI is
    quoted before anything is written, so a trip is either fully re-priced
    or keeps its old prices. Addresses resolved along the way are linked to
    the trip immediately, so a retry reuses them instead of geocoding again.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        quotes: QuoteService,
        trips: FeaturedTripRepository,
        addresses: AddressRepository,
        tariff_store: TariffConfigStore,
        default_tier: TariffTier = TariffTier.A,
        max_workers: int = 1,
    ):
        self.geocoder = geocoder
        self.quotes = quotes
        self.trips = trips
        self.addresses = addresses
        self.tariff_store = tariff_store
        self.default_tier = TariffTier(default_tier)
        self.max_workers = max(1, max_workers)

    def refresh(self) -> RefreshReport:
        config = self.tariff_store.latest()
        trips = self.trips.list_trips(active_only=True)

        if self.max_workers > 1 and len(trips) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(lambda t: self.refresh_trip(t, config), trips))
        else:
            outcomes = [self.refresh_trip(t, config) for t in trips]

        report = RefreshReport(config_version=config.version)
        for outcome in outcomes:
            if outcome.state is TripState.PERSISTED:
                report.succeeded.append(outcome.trip_id)
            else:
                report.failed.append(
                    RefreshFailure(
                        trip_id=outcome.trip_id,
                        reason=outcome.reason or "unknown error",
                        state=outcome.failed_at or TripState.PENDING_ADDRESS,
                    )
                )

        logger.info(
            "featured trips refreshed (tariff v%s): %d ok, %d failed",
            config.version,
            len(report.succeeded),
            len(report.failed),
        )
        return report

    def refresh_trip(self, trip: FeaturedTrip, config: TariffConfig) -> TripOutcome:
        state = TripState.PENDING_ADDRESS
        try:
            pickup_id, pickup = self.ensure_coords(
                trip.pickup_address_id, trip.pickup_label or trip.title
            )
            # link right away so a later failure doesn't orphan the new address
            if pickup_id != trip.pickup_address_id:
                self.trips.update_trip(trip.id, pickup_address_id=pickup_id)

            dropoffs = []
            for poi in trip.poi_destinations:
                dropoff_id, dropoff = self.ensure_coords(poi.dropoff_address_id, poi.label)
                if dropoff_id != poi.dropoff_address_id:
                    self.trips.update_poi(poi.id, dropoff_address_id=dropoff_id)
                dropoffs.append((poi, dropoff_id, dropoff))
            state = TripState.ADDRESS_RESOLVED

            priced: List[Tuple[FeaturedPoi, str, Quote]] = [
                (poi, dropoff_id, self._quote(pickup, dropoff, config))
                for poi, dropoff_id, dropoff in dropoffs
            ]
            state = TripState.QUOTED

            for poi, dropoff_id, quote in priced:
                self.trips.update_poi(
                    poi.id,
                    dropoff_address_id=dropoff_id,
                    distance_km=quote.distance_km,
                    duration_minutes=quote.duration_minutes,
                    price_cents=to_cents(quote.price_euros),
                )

            if priced:
                first = min(priced, key=lambda p: p[0].order)
                self.trips.update_trip(trip.id, base_price_cents=to_cents(first[2].price_euros))
            return TripOutcome(trip_id=trip.id, state=TripState.PERSISTED)

        except Exception as e:
            logger.exception(
                "featured trip refresh failed for %s (at %s)",
                trip.id,
                state.value,
                extra={"trip_id": trip.id},
            )
            return TripOutcome(
                trip_id=trip.id,
                state=TripState.ERRORED,
                failed_at=state,
                reason=str(e) or e.__class__.__name__,
            )

    def ensure_coords(self, address_id: Optional[str], label: str) -> Tuple[str, Coordinate]:
        """Linked coordinates when known, otherwise geocode the label and store the result."""
        address = self.addresses.get(address_id) if address_id else None
        if (
            address is not None
            and address.lat is not None
            and address.lng is not None
            and math.isfinite(address.lat)
            and math.isfinite(address.lng)
        ):
            return address.id, Coordinate(lat=address.lat, lng=address.lng)

        # trusted internal caller: no client key, no rate limit
        candidate = self.geocoder.geocode(label, client_key=None).unwrap()[0]

        if address is not None:
            self.addresses.update_coordinates(address.id, candidate.lat, candidate.lng)
            return address.id, Coordinate(lat=candidate.lat, lng=candidate.lng)

        created = self.addresses.create(label, candidate)
        return created.id, Coordinate(lat=candidate.lat, lng=candidate.lng)

    def _quote(self, pickup: Coordinate, dropoff: Coordinate, config: TariffConfig) -> Quote:
        return self.quotes.quote(
            QuoteRequest(
                pickup=pickup,
                dropoff=dropoff,
                tariff=self.default_tier,
                passengers=1,
                fifth_passenger=False,
            ),
            config,
        )
