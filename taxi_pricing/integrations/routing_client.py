"""OpenRouteService directions client."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from taxi_pricing.domain.errors import Err, ErrorKind, Failure, Ok, Result
from taxi_pricing.domain.models import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteSummary:
    distance_meters: float
    duration_seconds: float


def _unavailable(message: str) -> Err:
    return Err(Failure(ErrorKind.UPSTREAM_UNAVAILABLE, message))


def parse_summary(data: Any) -> Optional[RouteSummary]:
    """Accept both GeoJSON (features[0].properties.summary) and JSON (routes[0].summary)."""
    if not isinstance(data, dict):
        return None
    summary = None
    features = data.get("features")
    if isinstance(features, list) and features and isinstance(features[0], dict):
        summary = (features[0].get("properties") or {}).get("summary")
    if summary is None:
        routes = data.get("routes")
        if isinstance(routes, list) and routes and isinstance(routes[0], dict):
            summary = routes[0].get("summary")
    if not isinstance(summary, dict):
        return None

    distance = summary.get("distance")
    duration = summary.get("duration")
    if isinstance(distance, bool) or isinstance(duration, bool):
        return None
    if not isinstance(distance, (int, float)) or not isinstance(duration, (int, float)):
        return None
    if not (math.isfinite(distance) and math.isfinite(duration)) or distance < 0 or duration < 0:
        return None
    return RouteSummary(distance_meters=float(distance), duration_seconds=float(duration))


class OpenRouteServiceClient:
    def __init__(
        self,
        api_key: str | None,
        url: str = "https://api.openrouteservice.org/v2/directions/driving-car",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def route(self, origin: Coordinate, destination: Coordinate) -> Result[RouteSummary]:
        if not self.api_key:
            return _unavailable("routing provider not configured")

        body = {"coordinates": [[origin.lng, origin.lat], [destination.lng, destination.lat]]}
        headers = {"Authorization": self.api_key, "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=body, headers=headers)
        except httpx.TimeoutException:
            return _unavailable(f"routing request timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            return _unavailable(f"routing network error: {e}")

        if response.status_code >= 400:
            return _unavailable(f"routing provider returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            return _unavailable("routing response is not valid JSON")

        summary = parse_summary(data)
        if summary is None:
            return _unavailable("routing response has no usable summary")
        return Ok(summary)
