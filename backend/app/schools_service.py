from __future__ import annotations

import csv
import logging
from pathlib import Path

from .schemas import NOT_AVAILABLE_TEXT, Institution

logger = logging.getLogger(__name__)

DEFAULT_SCHOOLS_CSV = Path(__file__).resolve().parent / "data" / "schools.csv"
MAX_SCHOOLS = 5

REQUIRED_COLUMNS = {
    "name": "SCH_NAME",
    "city": "MCITY",
    "state": "MSTATE",
    "zip": "MZIP",
}
OPTIONAL_COLUMNS = {
    "level": "LEVEL",
    "street": "MSTREET1",
    "street_fallback": "LSTREET1",
    "phone": "PHONE",
    "website": "WEBSITE",
    "website_fallback": "School_Web_Site",
    "charter": "CHARTER_TEXT",
    "school_type": "SCH_TYPE_TEXT",
}

PLACEHOLDER_VALUES = {"", "-", NOT_AVAILABLE_TEXT}


class MissingColumnsError(RuntimeError):
    pass


def discover_columns(header: list[str]) -> dict[str, int]:
    positions = {name.strip(): idx for idx, name in enumerate(header)}
    columns: dict[str, int] = {}
    for field, column in {**REQUIRED_COLUMNS, **OPTIONAL_COLUMNS}.items():
        if column in positions:
            columns[field] = positions[column]

    missing = [column for field, column in REQUIRED_COLUMNS.items() if field not in columns]
    if missing:
        raise MissingColumnsError(f"Required columns not found in dataset: {', '.join(missing)}")
    return columns


def _cell(row: list[str], columns: dict[str, int], field: str) -> str:
    idx = columns.get(field)
    if idx is None or idx >= len(row):
        return ""
    return row[idx].strip()


def _cell_or_default(row: list[str], columns: dict[str, int], field: str, default: str) -> str:
    value = _cell(row, columns, field)
    if value in ("", "-"):
        return default
    return value


def _with_fallback(row: list[str], columns: dict[str, int], primary: str, secondary: str) -> str:
    value = _cell(row, columns, primary)
    if value not in PLACEHOLDER_VALUES:
        return value
    fallback = _cell(row, columns, secondary)
    if fallback not in PLACEHOLDER_VALUES:
        return fallback
    return NOT_AVAILABLE_TEXT


def build_institution(row: list[str], columns: dict[str, int], zip_code: str) -> Institution:
    return Institution(
        name=_cell_or_default(row, columns, "name", NOT_AVAILABLE_TEXT),
        city=_cell_or_default(row, columns, "city", NOT_AVAILABLE_TEXT),
        state=_cell_or_default(row, columns, "state", NOT_AVAILABLE_TEXT),
        level=_cell_or_default(row, columns, "level", "Unknown"),
        zip_code=zip_code,
        street=_with_fallback(row, columns, "street", "street_fallback"),
        phone=_cell_or_default(row, columns, "phone", NOT_AVAILABLE_TEXT),
        charter=_cell_or_default(row, columns, "charter", NOT_AVAILABLE_TEXT),
        school_type=_cell_or_default(row, columns, "school_type", NOT_AVAILABLE_TEXT),
        website=_with_fallback(row, columns, "website", "website_fallback"),
    )


def find_schools(zip_code: str, *, dataset_path: Path | None = None) -> list[Institution]:
    """Return up to five schools whose mailing ZIP matches ``zip_code``.

    The dataset is read fresh on every call and scanning stops at the fifth
    match. A missing file, unrecognised header or unreadable CSV yields an
    empty list.
    """
    path = dataset_path or DEFAULT_SCHOOLS_CSV
    target = zip_code.strip().zfill(5)
    schools: list[Institution] = []

    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                logger.warning("School dataset %s is empty", path)
                return []
            columns = discover_columns(header)

            for row in reader:
                if _cell(row, columns, "zip").zfill(5) != target:
                    continue
                schools.append(build_institution(row, columns, target))
                if len(schools) >= MAX_SCHOOLS:
                    break
    except FileNotFoundError:
        logger.error("School dataset not found at %s", path)
        return []
    except MissingColumnsError as exc:
        logger.error("School dataset %s is unusable: %s", path, exc)
        return []
    except (csv.Error, UnicodeDecodeError, OSError) as exc:
        logger.error("Error reading school dataset %s: %s", path, exc)
        return []

    logger.info("Found %d school(s) for ZIP %s", len(schools), target)
    return schools
