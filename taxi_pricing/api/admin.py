import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter

from taxi_pricing.config import settings
from taxi_pricing.dependencies import Services, get_services
from taxi_pricing.domain.models import RefreshReportOut, TariffOut, TariffUpdateOut, TariffValues
from taxi_pricing.middleware.rate_limit import client_key
from taxi_pricing.repos.tariff_repo import values_from_config
from taxi_pricing.security.api_key import require_admin_api_key

router = APIRouter(prefix="/api/admin", tags=["admin"])
limiter = Limiter(key_func=client_key)
logger = logging.getLogger(__name__)


@router.get("/config")
@limiter.limit(lambda: settings.ADMIN_RATE_LIMIT)
def admin_config(
    request: Request,
    _=Depends(require_admin_api_key),
    services: Services = Depends(get_services),
):
    # don't leak secrets
    return {
        "env": settings.APP_ENV,
        "allowed_origins": settings.ALLOWED_ORIGINS,
        "providers": {
            "routing_configured": services.routing_client.configured,
            "geocoding_configured": services.geocoding_client.configured,
            "timeout_sec": settings.PROVIDER_TIMEOUT_SEC,
        },
        "caches": {
            "distance": services.distance_cache.stats(),
            "geocode": services.geocode_cache.stats(),
        },
        "geocode_rate_limit": {
            "capacity": services.rate_limiter.capacity,
            "window_sec": services.rate_limiter.window_sec,
        },
        "tariff_version": services.tariff_store.latest().version,
    }


@router.put("/tariffs", response_model=TariffUpdateOut)
@limiter.limit(lambda: settings.ADMIN_RATE_LIMIT)
def update_tariffs(
    request: Request,
    body: TariffValues,
    _=Depends(require_admin_api_key),
    services: Services = Depends(get_services),
):
    """
    Save a new tariff version, then re-price the featured trips.
    The write stands even if the refresh blows up; stale trips catch up on
    the next successful run.
    """
    config = services.tariff_store.save(body)
    logger.info("tariff config saved as v%s", config.version)

    refresh = None
    try:
        refresh = RefreshReportOut.model_validate(services.refresher.refresh().as_dict())
    except Exception:
        logger.exception("featured trips refresh failed after tariff update v%s", config.version)

    return TariffUpdateOut(config=TariffOut(**values_from_config(config)), refresh=refresh)


@router.post("/featured-trips/refresh", response_model=RefreshReportOut)
@limiter.limit(lambda: settings.ADMIN_RATE_LIMIT)
def refresh_featured_trips(
    request: Request,
    _=Depends(require_admin_api_key),
    services: Services = Depends(get_services),
):
    return RefreshReportOut.model_validate(services.refresher.refresh().as_dict())
