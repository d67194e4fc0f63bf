from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def parse_origins(raw: str) -> List[str]:
    # "https://site.fr/, https://www.site.fr" -> ["https://site.fr", "https://www.site.fr"]
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


def add_cors(app: FastAPI, allowed_origins: str) -> None:
    """Browser calls come from the booking site; admin calls also send X-API-Key."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_origins(allowed_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key"],
        # lets the wizard read the geocoding back-off hint
        expose_headers=["Retry-After"],
        max_age=600,
    )
