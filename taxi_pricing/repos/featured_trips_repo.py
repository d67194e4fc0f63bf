from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from taxi_pricing.domain.models import Address, FeaturedTrip
from taxi_pricing.repos.addresses_repo import AddressRepository

# ===== seed path resolution (local + deploy secret) =====
BASE_DIR = Path(__file__).resolve().parents[2]

DEFAULT_SEED = BASE_DIR / "data" / "featured_trips.json"
SECRET_SEED = Path("/etc/secrets/featured_trips.json")


def resolve_seed_path(override: Optional[str] = None) -> Path:
    path = Path(override or os.getenv("FEATURED_TRIPS_PATH", str(DEFAULT_SEED)))
    if not path.exists() and SECRET_SEED.exists():
        path = SECRET_SEED
    return path


class FeaturedTripRepository:
    """
    Featured trips and their POIs. Reads return copies so callers can't
    mutate stored rows behind the repository's back.
    """

    def __init__(self, trips: Iterable[FeaturedTrip] = ()):
        self._lock = threading.Lock()
        self._trips: Dict[str, FeaturedTrip] = {t.id: t.model_copy(deep=True) for t in trips}

    def list_trips(self, active_only: bool = False) -> List[FeaturedTrip]:
        with self._lock:
            trips = [t.model_copy(deep=True) for t in self._trips.values()]
        if active_only:
            trips = [t for t in trips if t.active]
        return trips

    def get_trip(self, trip_id: str) -> Optional[FeaturedTrip]:
        with self._lock:
            trip = self._trips.get(trip_id)
            return trip.model_copy(deep=True) if trip else None

    def update_poi(self, poi_id: str, **fields: Any) -> None:
        with self._lock:
            for trip_id, trip in self._trips.items():
                for i, poi in enumerate(trip.poi_destinations):
                    if poi.id == poi_id:
                        pois = list(trip.poi_destinations)
                        pois[i] = poi.model_copy(update=fields)
                        self._trips[trip_id] = trip.model_copy(update={"poi_destinations": pois})
                        return
        raise KeyError(f"featured POI not found: {poi_id}")

    def update_trip(self, trip_id: str, **fields: Any) -> None:
        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None:
                raise KeyError(f"featured trip not found: {trip_id}")
            self._trips[trip_id] = trip.model_copy(update=fields)


def load_seed(path: Path, addresses: AddressRepository) -> FeaturedTripRepository:
    """
    Seed file: {"addresses": [...], "trips": [...]} with camelCase keys.
    A missing file gives an empty repository.
    """
    if not path.exists():
        return FeaturedTripRepository()

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    for row in data.get("addresses", []):
        addresses.add(Address.model_validate(row))

    trips = [FeaturedTrip.model_validate(row) for row in data.get("trips", [])]
    return FeaturedTripRepository(trips)
