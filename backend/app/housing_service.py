from __future__ import annotations

import logging
from typing import Any

import httpx

from .schemas import UNAVAILABLE, HousingSnapshot
from .upstream import ApiConfig, FormatError, MissingAPIKeyError, request_json

logger = logging.getLogger(__name__)

RENTCAST_MARKETS_URL = "https://api.rentcast.io/v1/markets"


def _nested_amount(payload: dict[str, Any], section: str, field: str) -> float:
    block = payload.get(section)
    if not isinstance(block, dict):
        return UNAVAILABLE
    value = block.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return UNAVAILABLE
    return float(value)


def fetch_housing(
    client: httpx.Client,
    zip_code: str,
    *,
    api_key: str | None,
    config: ApiConfig,
) -> HousingSnapshot:
    """Average sale price and average rent for a ZIP code.

    Each amount defaults to ``-1`` on its own, so a market with rental data but
    no sales still reports its rent.
    """
    if not api_key:
        raise MissingAPIKeyError("housing", "RENTCAST_API_KEY is not configured.")

    payload = request_json(
        client,
        RENTCAST_MARKETS_URL,
        params={"zipCode": zip_code},
        stage="housing",
        config=config,
        headers={"X-Api-Key": api_key},
    )
    if not isinstance(payload, dict):
        raise FormatError("housing", "Expected a JSON object.")

    snapshot = HousingSnapshot(
        avg_home_price=_nested_amount(payload, "saleData", "averagePrice"),
        avg_rent=_nested_amount(payload, "rentalData", "averageRent"),
    )
    logger.info(
        "Housing for ZIP %s: avg price %s, avg rent %s",
        zip_code,
        snapshot.avg_home_price,
        snapshot.avg_rent,
    )
    return snapshot
