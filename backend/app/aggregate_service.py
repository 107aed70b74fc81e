from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import httpx

from .census_service import fetch_median_income, fetch_survey_variables
from .config import Settings
from .geo_service import fetch_location
from .housing_service import fetch_housing
from .schemas import UNAVAILABLE, AggregateRecord, AreaLocation, HousingSnapshot, SourceDiagnostic
from .schools_service import MAX_SCHOOLS, find_schools
from .upstream import ApiConfig, UpstreamAPIError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_LOCATION = "location"
SOURCE_HOUSING = "housing"
SOURCE_MEDIAN_INCOME = "median_income"
SOURCE_DEMOGRAPHICS = "demographics"
SOURCE_SCHOOLS = "schools"


class QueryCancelledError(RuntimeError):
    pass


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """Outcome of one collaborator call: its value, or its default plus why."""

    source: str
    value: T
    diagnostic: SourceDiagnostic | None = None

    @property
    def defaulted(self) -> bool:
        return self.diagnostic is not None


def _isolate(source: str, fn: Callable[[], T], default: T) -> SourceResult[T]:
    try:
        return SourceResult(source=source, value=fn())
    except UpstreamAPIError as exc:
        logger.warning("%s source defaulted (%s): %s", source, exc.kind, exc)
        kind = exc.kind
        message = str(exc)
    except Exception as exc:  # noqa: BLE001
        logger.exception("%s source failed unexpectedly", source)
        kind = "UnexpectedError"
        message = f"{type(exc).__name__}: {exc!s}"
    return SourceResult(
        source=source,
        value=default,
        diagnostic=SourceDiagnostic(source=source, kind=kind, message=message),
    )


def _collaborators(
    client: httpx.Client,
    zip_code: str,
    settings: Settings,
) -> list[tuple[str, Callable[[], Any], Any]]:
    config = ApiConfig(timeout=settings.http_timeout)
    return [
        (
            SOURCE_LOCATION,
            lambda: fetch_location(
                client, zip_code, api_key=settings.zipcodebase_api_key, config=config
            ),
            AreaLocation(zip_code=zip_code),
        ),
        (
            SOURCE_HOUSING,
            lambda: fetch_housing(
                client, zip_code, api_key=settings.rentcast_api_key, config=config
            ),
            HousingSnapshot(),
        ),
        (
            SOURCE_MEDIAN_INCOME,
            lambda: fetch_median_income(
                client,
                zip_code,
                config=config,
                acs_year=settings.acs_year,
                api_key=settings.census_api_key,
            ),
            UNAVAILABLE,
        ),
        (
            SOURCE_DEMOGRAPHICS,
            lambda: fetch_survey_variables(
                client,
                zip_code,
                config=config,
                acs_year=settings.acs_year,
                api_key=settings.census_api_key,
            ),
            {},
        ),
        (
            SOURCE_SCHOOLS,
            lambda: find_schools(zip_code, dataset_path=settings.schools_csv_path),
            [],
        ),
    ]


def build_record(zip_code: str, results: dict[str, SourceResult[Any]]) -> AggregateRecord:
    location: AreaLocation = results[SOURCE_LOCATION].value
    schools = list(results[SOURCE_SCHOOLS].value)[:MAX_SCHOOLS]
    diagnostics = tuple(
        result.diagnostic for result in results.values() if result.diagnostic is not None
    )
    return AggregateRecord(
        zip_code=zip_code,
        city=location.city,
        state=location.state,
        latitude=location.latitude,
        longitude=location.longitude,
        housing=results[SOURCE_HOUSING].value,
        median_income=results[SOURCE_MEDIAN_INCOME].value,
        schools=tuple(schools),
        demographics=dict(results[SOURCE_DEMOGRAPHICS].value),
        diagnostics=diagnostics,
    )


def aggregate_area(
    client: httpx.Client,
    zip_code: str,
    *,
    settings: Settings,
    cancel_event: threading.Event | None = None,
) -> AggregateRecord:
    """Query every source for ``zip_code`` and assemble one record.

    Sources run concurrently and each failure is replaced by that source's
    default, so this only raises when ``cancel_event`` was set while the
    sources were running.
    """
    collaborators = _collaborators(client, zip_code, settings)
    with ThreadPoolExecutor(
        max_workers=len(collaborators), thread_name_prefix=f"zip-{zip_code}"
    ) as pool:
        futures = {
            source: pool.submit(_isolate, source, fn, default)
            for source, fn, default in collaborators
        }
        results = {source: future.result() for source, future in futures.items()}

    if cancel_event is not None and cancel_event.is_set():
        raise QueryCancelledError(f"Query for ZIP {zip_code} was superseded.")

    record = build_record(zip_code, results)
    if record.diagnostics:
        logger.info(
            "ZIP %s assembled with %d defaulted source(s): %s",
            zip_code,
            len(record.diagnostics),
            ", ".join(d.source for d in record.diagnostics),
        )
    return record
