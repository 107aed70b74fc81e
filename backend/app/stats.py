"""Derived statistics over a raw ACS variable mapping.

Every number here goes through ``parse_count`` so suppressed estimates
("null", "-", empty), negative annotation values and unparsable values count
as zero instead of raising.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping

from .schemas import CategoryShare, DemographicSummary

logger = logging.getLogger(__name__)

TOTAL_POPULATION_CODE = "B01003_001E"
BACHELORS_CODE = "B15003_017E"
DOCTORATE_CODE = "B15003_022E"

# B02001 race alone / two or more races.
RACE_CATEGORIES = [
    ("White", "B02001_002E"),
    ("Black", "B02001_003E"),
    ("American Indian/Alaska Native", "B02001_004E"),
    ("Asian", "B02001_005E"),
    ("Native Hawaiian/Pacific Islander", "B02001_006E"),
    ("Other/Latino", "B02001_007E"),
    ("Two or More Races", "B02001_008E"),
]


def _b01001(*columns: int) -> tuple[str, ...]:
    return tuple(f"B01001_{n:03d}E" for n in columns)


class AgeBucket(Enum):
    UNDER_18 = "Under 18"
    AGE_18_TO_44 = "18 to 44"
    AGE_45_TO_64 = "45 to 64"
    AGE_65_PLUS = "65 and over"

    @property
    def label(self) -> str:
        return self.value


# Male columns first, then female. "18 and 19 years" (007 / 031) opens 18 to 44.
AGE_BUCKET_CODES: dict[AgeBucket, tuple[str, ...]] = {
    AgeBucket.UNDER_18: _b01001(3, 4, 5, 6, 27, 28, 29, 30),
    AgeBucket.AGE_18_TO_44: _b01001(7, 8, 9, 10, 11, 12, 13, 14, 31, 32, 33, 34, 35, 36, 37, 38),
    AgeBucket.AGE_45_TO_64: _b01001(15, 16, 17, 18, 19, 39, 40, 41, 42, 43),
    AgeBucket.AGE_65_PLUS: _b01001(20, 21, 22, 23, 24, 25, 44, 45, 46, 47, 48, 49),
}


def parse_count(data: Mapping[str, str] | None, code: str) -> int:
    if not data:
        return 0
    value = data.get(code)
    if value is None:
        return 0
    text = str(value).strip()
    if text == "" or text == "-" or text.lower() == "null":
        return 0
    try:
        count = int(text)
    except ValueError:
        logger.warning("Could not parse integer for %s (value=%r); using 0", code, value)
        return 0
    # Negative estimates are ACS annotation sentinels (e.g. -666666666), not counts.
    if count < 0:
        logger.warning("Annotated estimate for %s (value=%r); using 0", code, value)
        return 0
    return count


def sum_codes(data: Mapping[str, str] | None, codes: tuple[str, ...] | list[str]) -> int:
    return sum(parse_count(data, code) for code in codes)


def age_bucket_population(data: Mapping[str, str] | None, bucket: AgeBucket) -> int:
    return sum_codes(data, AGE_BUCKET_CODES[bucket])


def total_population(data: Mapping[str, str] | None) -> int:
    return parse_count(data, TOTAL_POPULATION_CODE)


def percentage(count: int | float, total: int | float) -> float | None:
    """Share of ``total`` as a percentage, or None when there is no population to divide by."""
    if total <= 0:
        return None
    return (float(count) / float(total)) * 100.0


def _share(label: str, count: int, total: int) -> CategoryShare:
    return CategoryShare(label=label, count=count, pct=percentage(count, total))


def race_shares(data: Mapping[str, str] | None) -> list[CategoryShare]:
    total = total_population(data)
    return [_share(label, parse_count(data, code), total) for label, code in RACE_CATEGORIES]


def age_shares(data: Mapping[str, str] | None) -> list[CategoryShare]:
    total = total_population(data)
    return [_share(bucket.label, age_bucket_population(data, bucket), total) for bucket in AgeBucket]


def build_demographic_summary(data: Mapping[str, str] | None) -> DemographicSummary:
    return DemographicSummary(
        total_population=total_population(data),
        race=race_shares(data),
        age=age_shares(data),
        bachelors_degrees=parse_count(data, BACHELORS_CODE),
        doctorate_degrees=parse_count(data, DOCTORATE_CODE),
    )
