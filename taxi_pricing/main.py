from fastapi import FastAPI

from taxi_pricing.config import settings
from taxi_pricing.dependencies import Services, build_services
from taxi_pricing.logging_setup import setup_logging
from taxi_pricing.middleware.cors import add_cors
from taxi_pricing.middleware.errors import add_pricing_error_handlers
from taxi_pricing.middleware.security_headers import SecurityHeadersMiddleware
from taxi_pricing.middleware.rate_limit import add_proxy_headers, init_rate_limiter, add_rate_limit_exception_handler

from taxi_pricing.api.public import router as public_router
from taxi_pricing.api.admin import router as admin_router


def create_app(services: Services | None = None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON, environment=settings.APP_ENV)

    app = FastAPI(title="Taxi Pricing Service", version="1.0.0")
    app.state.services = services or build_services(settings)

    # CORS (restrict to the booking site in production)
    add_cors(app, settings.ALLOWED_ORIGINS)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware, app_env=settings.APP_ENV)

    # Rate limiter (slowapi)
    limiter = init_rate_limiter(app)
    add_rate_limit_exception_handler(app, limiter)

    # Trusted proxies rewrite the client address (outermost, added last)
    add_proxy_headers(app, settings.FORWARDED_ALLOW_IPS)

    # PricingError -> structured JSON error
    add_pricing_error_handlers(app)

    # Routes
    app.include_router(public_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["health"])
    def health():
        return {"ok": True, "env": settings.APP_ENV}

    return app
