import os

# before any taxi_pricing import: settings are read once at import time
os.environ.setdefault("PUBLIC_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ADMIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("OPENROUTESERVICE_API_KEY", "")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "")

import pytest

from taxi_pricing.cache.memory_cache import MemoryTTLCache
from taxi_pricing.domain.distance import DistanceEstimator
from taxi_pricing.domain.geocoder import Geocoder
from taxi_pricing.domain.quotes import QuoteService
from taxi_pricing.security.rate_limiter import TokenBucketRateLimiter
from tests.fakes import FakeClock, FakeGeocodingClient


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def distance_estimator(clock):
    # no routing provider: haversine only
    return DistanceEstimator(None, MemoryTTLCache(ttl_sec=600, clock=clock))


@pytest.fixture
def quote_service(distance_estimator):
    return QuoteService(distance_estimator)


@pytest.fixture
def geocoding_client():
    return FakeGeocodingClient()


@pytest.fixture
def geocoder(geocoding_client, clock):
    return Geocoder(
        geocoding_client,
        MemoryTTLCache(ttl_sec=24 * 3600, clock=clock),
        TokenBucketRateLimiter(capacity=30, window_sec=300, clock=clock),
    )
