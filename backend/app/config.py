"""Runtime settings read from the environment.

Provider credentials come from ``.env`` at the project root (or the working
directory) when present, otherwise from the real environment, and are
resolved once at process start. A missing key is not fatal: the source that
needs it falls back to its default value.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .census_service import DEFAULT_ACS_YEAR
from .schools_service import DEFAULT_SCHOOLS_CSV

PROJECT_ROOT = Path(__file__).resolve().parents[2]

for _env_path in (PROJECT_ROOT / ".env", Path.cwd() / ".env"):
    if _env_path.is_file():
        load_dotenv(_env_path)
        break

DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class Settings:
    zipcodebase_api_key: str | None
    rentcast_api_key: str | None
    census_api_key: str | None
    acs_year: str = DEFAULT_ACS_YEAR
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    schools_csv_path: Path = DEFAULT_SCHOOLS_CSV
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("*",)


def _optional(name: str) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or None


def _timeout_from_env() -> float:
    raw = (os.getenv("HTTP_TIMEOUT_SECONDS") or "").strip()
    if not raw:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"HTTP_TIMEOUT_SECONDS must be a number, got {raw!r}.") from exc
    if timeout <= 0:
        raise RuntimeError(f"HTTP_TIMEOUT_SECONDS must be > 0, got {raw!r}.")
    return timeout


def get_settings() -> Settings:
    raw_origins = os.getenv("CORS_ORIGINS", "*")
    cors_origins = tuple(origin.strip() for origin in raw_origins.split(",") if origin.strip())
    schools_csv = _optional("SCHOOLS_CSV_PATH")

    return Settings(
        zipcodebase_api_key=_optional("ZIPCODEBASE_API_KEY"),
        rentcast_api_key=_optional("RENTCAST_API_KEY"),
        census_api_key=_optional("CENSUS_API_KEY"),
        acs_year=_optional("ACS_YEAR") or DEFAULT_ACS_YEAR,
        http_timeout=_timeout_from_env(),
        schools_csv_path=Path(schools_csv) if schools_csv else DEFAULT_SCHOOLS_CSV,
        log_level=(_optional("LOG_LEVEL") or "INFO").upper(),
        cors_origins=cors_origins or ("*",),
    )
