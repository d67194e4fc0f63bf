from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    ALLOWED_ORIGINS: str = "http://127.0.0.1:3000,http://localhost:3000"
    ADMIN_API_KEY: str = "change-me"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    TIMEZONE: str = "Europe/Paris"

    # routing provider (OpenRouteService)
    OPENROUTESERVICE_API_KEY: str | None = None
    OPENROUTESERVICE_URL: str = "https://api.openrouteservice.org/v2/directions/driving-car"

    # geocoding provider (Google Geocoding)
    GOOGLE_MAPS_API_KEY: str | None = None
    GEOCODING_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    GEOCODING_COUNTRY: str = "FR"
    GEOCODING_LANGUAGE: str = "fr"

    PROVIDER_TIMEOUT_SEC: float = 5.0

    # caches
    REDIS_URL: str | None = None
    DISTANCE_CACHE_TTL_SEC: int = 10 * 60
    GEOCODE_CACHE_TTL_SEC: int = 24 * 60 * 60
    CACHE_MAXSIZE: int = 10_000

    # geocoding limits
    GEOCODE_RATE_CAPACITY: int = 30
    GEOCODE_RATE_WINDOW_SEC: float = 5 * 60
    GEOCODE_RATE_MAX_CLIENTS: int = 10_000
    # proxies allowed to set X-Forwarded-For; empty means use the socket peer
    FORWARDED_ALLOW_IPS: str = ""
    GEOCODE_MIN_LENGTH: int = 5
    GEOCODE_MAX_RESULTS: int = 5

    # pricing
    FALLBACK_SPEED_KMH: float = 40.0
    DEFAULT_TARIFF: str = "A"

    # featured trips refresh
    REFRESH_MAX_WORKERS: int = 1
    REFRESH_INTERVAL_SEC: int = 15 * 60
    FEATURED_TRIPS_PATH: str | None = None

    # rate limit
    PUBLIC_RATE_LIMIT: str = "60/minute"
    ADMIN_RATE_LIMIT: str = "20/minute"


settings = Settings()
