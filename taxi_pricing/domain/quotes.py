from __future__ import annotations

import math
from typing import Optional

from taxi_pricing.domain.distance import DistanceEstimator
from taxi_pricing.domain.errors import ErrorKind, Failure, PricingError
from taxi_pricing.domain.geo import minutes_at_speed, validate_coordinate
from taxi_pricing.domain.models import Quote, QuoteRequest, RideExtras, TariffConfig
from taxi_pricing.domain.tariffs import price

FIFTH_PASSENGER_THRESHOLD = 4


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def resolve_extras(req: QuoteRequest) -> RideExtras:
    passengers = max(0, req.passengers)
    if req.fifth_passenger is not None:
        fifth = req.fifth_passenger
    else:
        fifth = passengers > FIFTH_PASSENGER_THRESHOLD
    return RideExtras(
        fifth_passenger=fifth,
        baggage_count=max(0, req.baggage_count),
        wait_minutes=max(0, req.wait_minutes),
    )


class QuoteService:
    """Distance estimation + tariff formula behind a single call."""

    def __init__(self, distance_estimator: DistanceEstimator, fallback_speed_kmh: float = 40.0):
        self.distance_estimator = distance_estimator
        self.fallback_speed_kmh = fallback_speed_kmh

    def quote(self, req: QuoteRequest, config: TariffConfig) -> Quote:
        extras = resolve_extras(req)
        approximate = False
        duration: Optional[float] = None

        if _finite(req.distance_km):
            # coordinates are optional here but must be valid when present
            if req.pickup is not None:
                validate_coordinate(req.pickup, "pickup")
            if req.dropoff is not None:
                validate_coordinate(req.dropoff, "dropoff")
            distance = max(0.0, float(req.distance_km))
        else:
            if req.pickup is None or req.dropoff is None:
                raise PricingError(
                    Failure(ErrorKind.INVALID_INPUT, "Pickup and dropoff coordinates are required.")
                )
            estimate = self.distance_estimator.estimate(
                validate_coordinate(req.pickup, "pickup"),
                validate_coordinate(req.dropoff, "dropoff"),
            )
            distance = estimate.distance_km
            duration = estimate.duration_minutes
            approximate = estimate.approximate

        if _finite(req.duration_minutes):
            duration = max(0.0, float(req.duration_minutes))
        elif duration is None:
            duration = float(round(minutes_at_speed(distance, self.fallback_speed_kmh)))

        return Quote(
            distance_km=distance,
            duration_minutes=duration,
            price_euros=price(distance, req.tariff, extras, config),
            tariff=req.tariff,
            approximate=approximate,
        )
