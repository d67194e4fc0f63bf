from __future__ import annotations

import logging
from typing import Optional, Protocol

from taxi_pricing.cache.base import Cache
from taxi_pricing.domain.errors import Failure, Result
from taxi_pricing.domain.geo import haversine_km, minutes_at_speed, validate_coordinate
from taxi_pricing.domain.models import Coordinate, DistanceEstimate

logger = logging.getLogger(__name__)


class RoutingClient(Protocol):
    def route(self, origin: Coordinate, destination: Coordinate) -> Result: ...


def cache_key(origin: Coordinate, destination: Coordinate) -> str:
    # directional: A->B and B->A are separate entries
    return f"{origin.lat:.6f},{origin.lng:.6f}->{destination.lat:.6f},{destination.lng:.6f}"


class DistanceEstimator:
    """
    Road distance and duration between two points.

    Uses the routing provider when it answers and a great-circle estimate
    otherwise. Provider failures never reach the caller; they only flip
    ``approximate`` to True.
    """

    def __init__(
        self,
        routing_client: Optional[RoutingClient],
        cache: Cache,
        fallback_speed_kmh: float = 40.0,
    ):
        self.routing_client = routing_client
        self.cache = cache
        self.fallback_speed_kmh = fallback_speed_kmh

    def estimate(self, origin: Coordinate, destination: Coordinate) -> DistanceEstimate:
        validate_coordinate(origin, "pickup")
        validate_coordinate(destination, "dropoff")

        key = cache_key(origin, destination)
        cached = self.cache.get(key)
        if cached is not None:
            return DistanceEstimate.model_validate(cached)

        if self.routing_client is None:
            estimate = self.approximate(origin, destination)
        else:
            estimate = (
                self.routing_client.route(origin, destination)
                .map(
                    lambda s: DistanceEstimate(
                        distance_km=round(s.distance_meters / 1000, 2),
                        duration_minutes=round(s.duration_seconds / 60),
                    )
                )
                .unwrap_or_else(lambda failure: self._fallback(origin, destination, failure))
            )

        self.cache.set(key, estimate.model_dump())
        return estimate

    def approximate(self, origin: Coordinate, destination: Coordinate) -> DistanceEstimate:
        km = haversine_km(origin, destination)
        return DistanceEstimate(
            distance_km=round(km, 2),
            duration_minutes=round(minutes_at_speed(km, self.fallback_speed_kmh)),
            approximate=True,
        )

    def _fallback(
        self, origin: Coordinate, destination: Coordinate, failure: Failure
    ) -> DistanceEstimate:
        logger.warning("routing provider unusable (%s); using haversine estimate", failure.message)
        return self.approximate(origin, destination)
