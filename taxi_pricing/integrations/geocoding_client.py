"""Google Geocoding API client (raw payload only; mapping lives in the geocoder)."""
from __future__ import annotations

from typing import Any

import httpx

from taxi_pricing.domain.errors import Err, ErrorKind, Failure, Ok, Result


def _unavailable(message: str) -> Err:
    return Err(Failure(ErrorKind.UPSTREAM_UNAVAILABLE, message))


class GoogleGeocodingClient:
    def __init__(
        self,
        api_key: str | None,
        url: str = "https://maps.googleapis.com/maps/api/geocode/json",
        country: str = "FR",
        language: str = "fr",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.country = country
        self.language = language
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def search(self, address: str) -> Result[dict[str, Any]]:
        if not self.api_key:
            return _unavailable("geocoding provider not configured")

        params = {
            "address": address,
            "key": self.api_key,
            "components": f"country:{self.country}",
            "language": self.language,
            "region": self.country.lower(),
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(self.url, params=params)
        except httpx.TimeoutException:
            return _unavailable(f"geocoding request timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            return _unavailable(f"geocoding network error: {e}")

        if response.status_code >= 400:
            return _unavailable(f"geocoding provider returned HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError:
            return _unavailable("geocoding response is not valid JSON")
        if not isinstance(data, dict):
            return _unavailable("geocoding response is not an object")
        return Ok(data)
