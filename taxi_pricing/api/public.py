from datetime import datetime
from typing import List
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter

from taxi_pricing.config import settings
from taxi_pricing.dependencies import Services, get_services
from taxi_pricing.domain.addresses import normalize_candidate, suggest
from taxi_pricing.domain.errors import ErrorKind, Failure, PricingError
from taxi_pricing.domain.models import (
    CandidatesOut,
    DistanceEstimate,
    DistanceIn,
    FeaturedTrip,
    GeocodeIn,
    QuoteIn,
    QuoteOut,
    QuoteRequest,
    TariffOut,
)
from taxi_pricing.domain.tariffs import select_tier
from taxi_pricing.middleware.rate_limit import client_key
from taxi_pricing.repos.tariff_repo import values_from_config

router = APIRouter(prefix="/api/public", tags=["public"])
limiter = Limiter(key_func=client_key)


def pickup_time(date: str | None, time: str | None) -> datetime:
    """Local pickup time; missing parts default to now."""
    tz = ZoneInfo(settings.TIMEZONE)
    now = datetime.now(tz)
    if not date and not time:
        return now
    try:
        day = datetime.strptime(date, "%Y-%m-%d").date() if date else now.date()
        clock = datetime.strptime(time, "%H:%M").time() if time else now.time()
    except ValueError as e:
        raise PricingError(
            Failure(ErrorKind.INVALID_INPUT, "Invalid date or time (expected YYYY-MM-DD and HH:MM).")
        ) from e
    return datetime.combine(day, clock, tzinfo=tz)


@router.post("/quote", response_model=QuoteOut)
@limiter.limit(lambda: settings.PUBLIC_RATE_LIMIT)
def quote(request: Request, body: QuoteIn, services: Services = Depends(get_services)):
    """
    Price a ride from coordinates or from an already known distance.
    Without an explicit tariff, tier A/B is picked from the pickup date/time.
    """
    tier = body.tariff or select_tier(pickup_time(body.date, body.time))
    req = QuoteRequest(
        pickup=body.pickup,
        dropoff=body.dropoff,
        distance_km=body.distance_km,
        duration_minutes=body.duration_minutes,
        tariff=tier,
        passengers=body.passengers,
        baggage_count=body.baggage_count,
        wait_minutes=body.wait_minutes,
        fifth_passenger=body.fifth_passenger,
    )
    result = services.quotes.quote(req, services.tariff_store.latest())
    return QuoteOut(
        distance_km=result.distance_km,
        duration_minutes=result.duration_minutes,
        price=result.price_euros,
        tariff=result.tariff,
        approximate=result.approximate,
    )


@router.post("/distance", response_model=DistanceEstimate)
@limiter.limit(lambda: settings.PUBLIC_RATE_LIMIT)
def distance(request: Request, body: DistanceIn, services: Services = Depends(get_services)):
    return services.distance_estimator.estimate(body.pickup, body.dropoff)


@router.post("/geocode", response_model=CandidatesOut)
def geocode(request: Request, body: GeocodeIn, services: Services = Depends(get_services)):
    # per-client token bucket lives in the geocoder; no slowapi limit here
    candidates = services.geocoder.geocode(body.address, client_key(request)).unwrap()
    return CandidatesOut(results=candidates)


@router.get("/suggestions", response_model=CandidatesOut)
def suggestions(
    request: Request,
    q: str = Query("", description="Text typed in the address field"),
    services: Services = Depends(get_services),
):
    query = q.strip()
    if len(query) < max(3, services.geocoder.min_length):
        return CandidatesOut(results=[])

    result = services.geocoder.geocode(query, client_key(request))
    if not result.is_ok():
        if result.failure.kind is ErrorKind.NOT_FOUND:
            return CandidatesOut(results=[])
        raise PricingError(result.failure)

    results = suggest(result.value, query)
    if not results and result.value:
        # free text that geocodes but matches no token: offer the best hit
        results = [normalize_candidate(result.value[0], query)]
    return CandidatesOut(results=results)


@router.get("/tariffs", response_model=TariffOut)
def tariffs(services: Services = Depends(get_services)):
    return TariffOut(**values_from_config(services.tariff_store.latest()))


@router.get("/featured-trips", response_model=List[FeaturedTrip])
def featured_trips(services: Services = Depends(get_services)):
    trips = services.trips.list_trips(active_only=True)
    for trip in trips:
        trip.poi_destinations.sort(key=lambda p: p.order)
    return trips
