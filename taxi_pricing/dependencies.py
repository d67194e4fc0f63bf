"""Composition root: builds the service graph from settings."""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from taxi_pricing.cache.base import Cache
from taxi_pricing.cache.memory_cache import MemoryTTLCache
from taxi_pricing.cache.redis_cache import RedisTTLCache
from taxi_pricing.config import Settings
from taxi_pricing.domain.distance import DistanceEstimator
from taxi_pricing.domain.geocoder import Geocoder
from taxi_pricing.domain.models import TariffTier
from taxi_pricing.domain.quotes import QuoteService
from taxi_pricing.integrations.geocoding_client import GoogleGeocodingClient
from taxi_pricing.integrations.routing_client import OpenRouteServiceClient
from taxi_pricing.repos.addresses_repo import AddressRepository
from taxi_pricing.repos.featured_trips_repo import (
    FeaturedTripRepository,
    load_seed,
    resolve_seed_path,
)
from taxi_pricing.repos.tariff_repo import TariffConfigStore
from taxi_pricing.security.rate_limiter import TokenBucketRateLimiter
from taxi_pricing.worker.tasks import FeaturedTripRefresher


@dataclass
class Services:
    routing_client: OpenRouteServiceClient
    geocoding_client: GoogleGeocodingClient
    distance_cache: Cache
    geocode_cache: Cache
    rate_limiter: TokenBucketRateLimiter
    distance_estimator: DistanceEstimator
    geocoder: Geocoder
    quotes: QuoteService
    tariff_store: TariffConfigStore
    addresses: AddressRepository
    trips: FeaturedTripRepository
    refresher: FeaturedTripRefresher


def _cache(settings: Settings, prefix: str, ttl_sec: int) -> Cache:
    if settings.REDIS_URL:
        return RedisTTLCache.from_url(settings.REDIS_URL, prefix=prefix, ttl_sec=ttl_sec)
    return MemoryTTLCache(ttl_sec=ttl_sec, maxsize=settings.CACHE_MAXSIZE)


def build_services(
    settings: Settings,
    *,
    routing_client: OpenRouteServiceClient | None = None,
    geocoding_client: GoogleGeocodingClient | None = None,
    distance_cache: Cache | None = None,
    geocode_cache: Cache | None = None,
    rate_limiter: TokenBucketRateLimiter | None = None,
    tariff_store: TariffConfigStore | None = None,
    addresses: AddressRepository | None = None,
    trips: FeaturedTripRepository | None = None,
) -> Services:
    """Every collaborator can be swapped in; the rest is built from settings."""
    routing_client = routing_client or OpenRouteServiceClient(
        api_key=settings.OPENROUTESERVICE_API_KEY,
        url=settings.OPENROUTESERVICE_URL,
        timeout=settings.PROVIDER_TIMEOUT_SEC,
    )
    geocoding_client = geocoding_client or GoogleGeocodingClient(
        api_key=settings.GOOGLE_MAPS_API_KEY,
        url=settings.GEOCODING_URL,
        country=settings.GEOCODING_COUNTRY,
        language=settings.GEOCODING_LANGUAGE,
        timeout=settings.PROVIDER_TIMEOUT_SEC,
    )
    distance_cache = distance_cache or _cache(settings, "distance", settings.DISTANCE_CACHE_TTL_SEC)
    geocode_cache = geocode_cache or _cache(settings, "geocode", settings.GEOCODE_CACHE_TTL_SEC)
    rate_limiter = rate_limiter or TokenBucketRateLimiter(
        capacity=settings.GEOCODE_RATE_CAPACITY,
        window_sec=settings.GEOCODE_RATE_WINDOW_SEC,
        max_keys=settings.GEOCODE_RATE_MAX_CLIENTS,
    )

    addresses = addresses or AddressRepository()
    if trips is None:
        trips = load_seed(resolve_seed_path(settings.FEATURED_TRIPS_PATH), addresses)
    tariff_store = tariff_store or TariffConfigStore()

    distance_estimator = DistanceEstimator(
        routing_client if routing_client.configured else None,
        distance_cache,
        fallback_speed_kmh=settings.FALLBACK_SPEED_KMH,
    )
    geocoder = Geocoder(
        geocoding_client,
        geocode_cache,
        rate_limiter,
        min_length=settings.GEOCODE_MIN_LENGTH,
        max_results=settings.GEOCODE_MAX_RESULTS,
    )
    quotes = QuoteService(distance_estimator, fallback_speed_kmh=settings.FALLBACK_SPEED_KMH)
    refresher = FeaturedTripRefresher(
        geocoder,
        quotes,
        trips,
        addresses,
        tariff_store,
        default_tier=TariffTier(settings.DEFAULT_TARIFF),
        max_workers=settings.REFRESH_MAX_WORKERS,
    )
    return Services(
        routing_client=routing_client,
        geocoding_client=geocoding_client,
        distance_cache=distance_cache,
        geocode_cache=geocode_cache,
        rate_limiter=rate_limiter,
        distance_estimator=distance_estimator,
        geocoder=geocoder,
        quotes=quotes,
        tariff_store=tariff_store,
        addresses=addresses,
        trips=trips,
        refresher=refresher,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
