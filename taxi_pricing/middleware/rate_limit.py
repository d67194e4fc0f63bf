from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware


def client_key(request: Request) -> str:
    """Caller identity for rate limiting: the peer address after proxy rewriting."""
    return get_remote_address(request) or "anon"


def add_proxy_headers(app: FastAPI, forwarded_allow_ips: str) -> None:
    # X-Forwarded-For is honoured only when the peer is a listed proxy
    if forwarded_allow_ips.strip():
        app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=forwarded_allow_ips)


def init_rate_limiter(app: FastAPI) -> Limiter:
    limiter = Limiter(key_func=client_key)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    return limiter


def add_rate_limit_exception_handler(app: FastAPI, limiter: Limiter) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too Many Requests"},
        )
