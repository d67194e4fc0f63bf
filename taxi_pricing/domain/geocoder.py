from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Protocol

from taxi_pricing.cache.base import Cache
from taxi_pricing.domain.addresses import dedupe_candidates, normalize_candidate
from taxi_pricing.domain.errors import Err, ErrorKind, Failure, Ok, Result
from taxi_pricing.domain.models import AddressCandidate
from taxi_pricing.security.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

# most specific first
LOCALITY_TYPES = ("locality", "postal_town", "administrative_area_level_2")

UNAVAILABLE_STATUSES = {"OVER_QUERY_LIMIT", "REQUEST_DENIED", "UNKNOWN_ERROR"}


class GeocodingClient(Protocol):
    def search(self, address: str) -> Result: ...


def _component(components: List[dict], *types: str) -> str:
    for wanted in types:
        for comp in components:
            comp_types = comp.get("types") if isinstance(comp, dict) else None
            if isinstance(comp_types, list) and wanted in comp_types:
                return str(comp.get("long_name") or "")
    return ""


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def map_provider_result(raw: dict) -> AddressCandidate:
    """Map one provider result to a candidate, synthesizing a label when missing."""
    components = raw.get("address_components")
    components = components if isinstance(components, list) else []

    street_number = _component(components, "street_number")
    street = _component(components, "route")
    postcode = _component(components, "postal_code")
    city = _component(components, *LOCALITY_TYPES)
    country = _component(components, "country")

    geometry = raw.get("geometry")
    location = geometry.get("location") if isinstance(geometry, dict) else None
    location = location if isinstance(location, dict) else {}
    label = raw.get("formatted_address") or ", ".join(
        p
        for p in (
            " ".join(s for s in (street_number, street) if s),
            " ".join(s for s in (postcode, city) if s),
            country,
        )
        if p
    )
    return AddressCandidate(
        label=label,
        street=street or None,
        street_number=street_number or None,
        postcode=postcode or None,
        city=city or None,
        country=country or None,
        lat=_as_float(location.get("lat")),
        lng=_as_float(location.get("lng")),
    )


class Geocoder:
    """
    Free-text address -> ranked address candidates.

    Cache hits are served before the rate limiter is consulted, so they never
    cost a token. ``client_key=None`` marks a trusted internal caller that is
    not rate limited.
    """

    def __init__(
        self,
        client: GeocodingClient,
        cache: Cache,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        min_length: int = 5,
        max_results: int = 5,
    ):
        self.client = client
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.min_length = min_length
        self.max_results = max_results

    def geocode(self, address_text: str, client_key: Optional[str]) -> Result[List[AddressCandidate]]:
        address = (address_text or "").strip()
        if len(address) < self.min_length:
            return Err(
                Failure(
                    ErrorKind.INVALID_INPUT,
                    f"Address is required (min {self.min_length} characters).",
                )
            )

        key = address.lower()
        cached = self.cache.get(key)
        if cached is not None:
            return Ok([AddressCandidate.model_validate(c) for c in cached])

        if client_key is not None and self.rate_limiter is not None:
            allowed, retry_after = self.rate_limiter.acquire(client_key)
            if not allowed:
                logger.info("geocoding rate limited", extra={"client_key": client_key})
                return Err(
                    Failure(
                        ErrorKind.RATE_LIMITED,
                        "Too many requests. Try again in a few minutes.",
                        retry_after=retry_after,
                    )
                )

        result = self.client.search(address)
        if not result.is_ok():
            logger.warning("geocoding failed for %r: %s", address, result.failure.message)
            return result

        mapped = self._candidates(result.value, address)
        if not mapped.is_ok():
            return mapped

        self.cache.set(key, [c.model_dump() for c in mapped.value])
        return mapped

    def _candidates(self, payload: dict, address: str) -> Result[List[AddressCandidate]]:
        status = payload.get("status")
        if status == "ZERO_RESULTS":
            return Err(Failure(ErrorKind.NOT_FOUND, "No result for this address."))
        if status == "INVALID_REQUEST":
            return Err(Failure(ErrorKind.INVALID_INPUT, "Invalid geocoding request."))
        if status in UNAVAILABLE_STATUSES:
            return Err(
                Failure(ErrorKind.UPSTREAM_UNAVAILABLE, "Geocoding service temporarily unavailable.")
            )
        results = payload.get("results")
        if status != "OK" or not isinstance(results, list):
            detail = payload.get("error_message") or status
            return Err(
                Failure(ErrorKind.UPSTREAM_UNAVAILABLE, f"Unusable geocoding response: {detail}")
            )

        candidates = [
            c
            for c in (map_provider_result(r) for r in results if isinstance(r, dict))
            if math.isfinite(c.lat) and math.isfinite(c.lng)
        ]
        if not candidates:
            return Err(Failure(ErrorKind.NOT_FOUND, "No geocodable point for this address."))

        normalized = dedupe_candidates(normalize_candidate(c, address) for c in candidates)
        return Ok(normalized[: self.max_results])
