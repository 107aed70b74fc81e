from __future__ import annotations

import httpx
from fastapi import FastAPI, Path
from fastapi.middleware.cors import CORSMiddleware

from .aggregate_service import aggregate_area
from .config import get_settings
from .logging_config import configure_logging
from .schemas import AreaProfileResponse
from .stats import build_demographic_summary

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="ZIP Area Profile API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/area/{zip_code}", response_model=AreaProfileResponse)
def area_profile(
    zip_code: str = Path(..., pattern=r"^\d{5}$", description="5-digit ZIP code."),
) -> AreaProfileResponse:
    """Location, housing, income, schools and demographics for a ZIP code.

    Sources that fail are reported under ``record.diagnostics`` and keep their
    sentinel defaults; the endpoint still answers 200.
    """
    with httpx.Client(follow_redirects=True) as client:
        record = aggregate_area(client, zip_code, settings=settings)
    return AreaProfileResponse(
        record=record,
        summary=build_demographic_summary(record.demographics),
    )
