from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from taxi_pricing.domain.models import Address, AddressCandidate


class AddressRepository:
    """In-process address records keyed by opaque id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Dict[str, Address] = {}

    def get(self, address_id: str) -> Optional[Address]:
        with self._lock:
            row = self._rows.get(address_id)
            return row.model_copy() if row else None

    def add(self, address: Address) -> Address:
        with self._lock:
            self._rows[address.id] = address.model_copy()
        return address

    def create(self, label: str, candidate: AddressCandidate) -> Address:
        address = Address(
            id=uuid.uuid4().hex,
            label=label,
            street=candidate.street,
            street_number=candidate.street_number,
            postcode=candidate.postcode,
            city=candidate.city,
            country=candidate.country,
            lat=candidate.lat,
            lng=candidate.lng,
        )
        return self.add(address)

    def update_coordinates(self, address_id: str, lat: float, lng: float) -> Address:
        with self._lock:
            row = self._rows.get(address_id)
            if row is None:
                raise KeyError(f"address not found: {address_id}")
            updated = row.model_copy(update={"lat": lat, "lng": lng})
            self._rows[address_id] = updated
            return updated.model_copy()
