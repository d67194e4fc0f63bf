from __future__ import annotations

import math
from math import atan2, cos, radians, sin, sqrt

from taxi_pricing.domain.errors import InvalidCoordinate
from taxi_pricing.domain.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def validate_coordinate(coord: Coordinate | None, name: str = "coordinate") -> Coordinate:
    if coord is None:
        raise InvalidCoordinate(f"Missing {name} coordinates.")
    lat, lng = coord.lat, coord.lng
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidCoordinate(f"Invalid {name} coordinates.")
    if abs(lat) > 90 or abs(lng) > 180:
        raise InvalidCoordinate(f"Out of range {name} coordinates.")
    return coord


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    p1, p2 = radians(a.lat), radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlon = radians(b.lng - a.lng)

    h = sin(dlat / 2) ** 2 + cos(p1) * cos(p2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def minutes_at_speed(distance_km: float, speed_kmh: float) -> float:
    return distance_km / speed_kmh * 60
