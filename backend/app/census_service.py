from __future__ import annotations

import logging
from typing import Any

import httpx

from .stats import (
    AGE_BUCKET_CODES,
    BACHELORS_CODE,
    DOCTORATE_CODE,
    RACE_CATEGORIES,
    TOTAL_POPULATION_CODE,
)
from .upstream import ApiConfig, DataAbsent, FormatError, UpstreamAPIError, request_json

logger = logging.getLogger(__name__)

CENSUS_ACS5_URL_TEMPLATE = "https://api.census.gov/data/{year}/acs/acs5"
DEFAULT_ACS_YEAR = "2021"
ZCTA_GEOGRAPHY = "zip code tabulation area"

# The provider rejects a call asking for more than 50 variables (NAME included).
MAX_VARIABLES_PER_REQUEST = 50

MEDIAN_INCOME_CODE = "B19013_001E"

GENERAL_VARIABLES = (
    TOTAL_POPULATION_CODE,
    *(code for _, code in RACE_CATEGORIES),
    BACHELORS_CODE,
    DOCTORATE_CODE,
    MEDIAN_INCOME_CODE,
)

AGE_VARIABLES = tuple(code for codes in AGE_BUCKET_CODES.values() for code in codes)

SURVEY_BATCHES = (
    ("survey_general", GENERAL_VARIABLES),
    ("survey_age", AGE_VARIABLES),
)

SUPPRESSED_VALUES = {"null", "-", ""}


def is_suppressed(value: str | None) -> bool:
    if value is None:
        return True
    return value.strip().lower() in SUPPRESSED_VALUES


def _raw_string(value: Any) -> str:
    if value is None:
        return "null"
    return str(value)


def fetch_survey_batch(
    client: httpx.Client,
    zip_code: str,
    variables: tuple[str, ...] | list[str],
    *,
    stage: str,
    config: ApiConfig,
    acs_year: str = DEFAULT_ACS_YEAR,
    api_key: str | None = None,
) -> dict[str, str]:
    """Fetch one batch of ACS variables for a ZCTA as a header -> value mapping.

    The provider answers with a two-row array: the header row of variable codes
    (plus ``NAME`` and the geography column) and the value row. Values are kept
    as raw strings, suppression sentinels included.
    """
    requested = ["NAME", *variables]
    if len(requested) > MAX_VARIABLES_PER_REQUEST:
        raise ValueError(
            f"{stage}: {len(requested)} variables requested, "
            f"provider limit is {MAX_VARIABLES_PER_REQUEST}."
        )

    params: dict[str, Any] = {
        "get": ",".join(requested),
        "for": f"{ZCTA_GEOGRAPHY}:{zip_code}",
    }
    if api_key:
        params["key"] = api_key

    rows = request_json(
        client,
        CENSUS_ACS5_URL_TEMPLATE.format(year=acs_year),
        params=params,
        stage=stage,
        config=config,
    )

    if not isinstance(rows, list):
        raise FormatError(stage, f"Expected a JSON array, got {type(rows).__name__}.")
    if len(rows) < 2:
        raise DataAbsent(stage, f"Expected header and value rows, got {len(rows)} row(s).")

    header, values = rows[0], rows[1]
    if not isinstance(header, list) or not isinstance(values, list):
        raise FormatError(stage, "Header and value rows must both be arrays.")
    if len(header) != len(values):
        raise FormatError(
            stage, f"Header has {len(header)} columns but value row has {len(values)}."
        )

    return {str(code): _raw_string(value) for code, value in zip(header, values)}


def merge_batches(batches: list[dict[str, str]]) -> dict[str, str]:
    merged: dict[str, str] = {}
    for batch in batches:
        merged.update(batch)
    return merged


def fetch_survey_variables(
    client: httpx.Client,
    zip_code: str,
    *,
    config: ApiConfig,
    acs_year: str = DEFAULT_ACS_YEAR,
    api_key: str | None = None,
) -> dict[str, str]:
    """Fetch every survey batch and merge them; a failing batch contributes nothing."""
    batches: list[dict[str, str]] = []
    for stage, variables in SURVEY_BATCHES:
        try:
            batch = fetch_survey_batch(
                client,
                zip_code,
                variables,
                stage=stage,
                config=config,
                acs_year=acs_year,
                api_key=api_key,
            )
        except UpstreamAPIError as exc:
            logger.warning("Skipping %s batch for ZIP %s (%s): %s", stage, zip_code, exc.kind, exc)
            continue
        batches.append(batch)

    merged = merge_batches(batches)
    logger.debug("Collected %d survey values for ZIP %s", len(merged), zip_code)
    return merged


def parse_median_income(value: str | None, *, zip_code: str = "") -> int:
    if is_suppressed(value):
        logger.info("Median income is suppressed for ZIP %s (value=%r)", zip_code, value)
        return -1
    try:
        parsed = int(value.strip())
    except ValueError:
        logger.warning("Could not parse median income %r for ZIP %s", value, zip_code)
        return -1
    # Negative medians are ACS annotation sentinels (e.g. -666666666), not incomes.
    if parsed < 0:
        return -1
    return parsed


def fetch_median_income(
    client: httpx.Client,
    zip_code: str,
    *,
    config: ApiConfig,
    acs_year: str = DEFAULT_ACS_YEAR,
    api_key: str | None = None,
) -> int:
    values = fetch_survey_batch(
        client,
        zip_code,
        (MEDIAN_INCOME_CODE,),
        stage="median_income",
        config=config,
        acs_year=acs_year,
        api_key=api_key,
    )
    if MEDIAN_INCOME_CODE not in values:
        raise DataAbsent("median_income", f"{MEDIAN_INCOME_CODE} missing from response.")
    return parse_median_income(values[MEDIAN_INCOME_CODE], zip_code=zip_code)
