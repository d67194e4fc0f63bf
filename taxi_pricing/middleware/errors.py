import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taxi_pricing.domain.errors import ErrorKind, Failure, PricingError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_UNAVAILABLE: 502,
    ErrorKind.INTERNAL: 500,
}


def failure_response(failure: Failure) -> JSONResponse:
    headers = {}
    if failure.kind is ErrorKind.RATE_LIMITED and failure.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(failure.retry_after)))
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(failure.kind, 500),
        content={"error": {"kind": failure.kind.value, "message": failure.message}},
        headers=headers,
    )


def add_pricing_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PricingError)
    async def pricing_error_handler(request: Request, exc: PricingError):
        return failure_response(exc.failure)

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return failure_response(Failure(ErrorKind.INTERNAL, "Internal error."))
