from __future__ import annotations

import logging
from typing import Any

import httpx

from .schemas import AreaLocation
from .upstream import ApiConfig, DataAbsent, FormatError, MissingAPIKeyError, request_json

logger = logging.getLogger(__name__)

ZIPCODEBASE_SEARCH_URL = "https://app.zipcodebase.com/api/v1/search"


def extract_best_match(payload: Any, zip_code: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise FormatError("geocoder", "Expected a JSON object.")
    results = payload.get("results")
    # Zipcodebase returns an empty list instead of an object when nothing matched.
    if not isinstance(results, dict):
        raise DataAbsent("geocoder", f"No location results for ZIP {zip_code}.")
    matches = results.get(zip_code) or results.get(zip_code.lstrip("0"))
    if not isinstance(matches, list) or not matches:
        raise DataAbsent("geocoder", f"No location results for ZIP {zip_code}.")
    best = matches[0]
    if not isinstance(best, dict):
        raise FormatError("geocoder", "Location match is not an object.")
    return best


def fetch_location(
    client: httpx.Client,
    zip_code: str,
    *,
    api_key: str | None,
    config: ApiConfig,
) -> AreaLocation:
    if not api_key:
        raise MissingAPIKeyError("geocoder", "ZIPCODEBASE_API_KEY is not configured.")

    payload = request_json(
        client,
        ZIPCODEBASE_SEARCH_URL,
        params={"apikey": api_key, "codes": zip_code, "country": "us"},
        stage="geocoder",
        config=config,
    )
    best = extract_best_match(payload, zip_code)

    try:
        location = AreaLocation(
            zip_code=zip_code,
            city=str(best["city"]),
            state=str(best["state_code"]),
            latitude=float(best["latitude"]),
            longitude=float(best["longitude"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise FormatError("geocoder", f"Incomplete location match: {exc!s}") from exc

    logger.info(
        "Resolved ZIP %s to %s, %s (%.6f, %.6f)",
        zip_code,
        location.city,
        location.state,
        location.latitude,
        location.longitude,
    )
    return location
