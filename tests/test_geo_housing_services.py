from __future__ import annotations

import httpx
import pytest

import backend.app.geo_service as geo
import backend.app.housing_service as housing
from backend.app.upstream import ApiConfig, DataAbsent, FormatError, MissingAPIKeyError

CONFIG = ApiConfig(timeout=1.0)


def _zipcodebase_payload() -> dict:
    return {
        "query": {"codes": ["30336"], "country": "us"},
        "results": {
            "30336": [
                {
                    "postal_code": "30336",
                    "country_code": "US",
                    "latitude": "33.74400000",
                    "longitude": "-84.56250000",
                    "city": "Atlanta",
                    "state": "Georgia",
                    "state_code": "GA",
                },
                {
                    "postal_code": "30336",
                    "country_code": "US",
                    "latitude": "33.7",
                    "longitude": "-84.5",
                    "city": "Fulton Industrial",
                    "state": "Georgia",
                    "state_code": "GA",
                },
            ]
        },
    }


def test_fetch_location_uses_best_match(
    client: httpx.Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen: dict = {}

    def fake_request_json(client, url, *, params, stage, config, headers=None):  # type: ignore[no-untyped-def]
        seen.update(params)
        assert stage == "geocoder"
        return _zipcodebase_payload()

    monkeypatch.setattr(geo, "request_json", fake_request_json)

    location = geo.fetch_location(client, "30336", api_key="k", config=CONFIG)
    assert location.city == "Atlanta"
    assert location.state == "GA"
    assert location.latitude == pytest.approx(33.744)
    assert location.longitude == pytest.approx(-84.5625)
    assert seen == {"apikey": "k", "codes": "30336", "country": "us"}


def test_fetch_location_without_matches_is_data_absent(
    client: httpx.Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_request_json(client, url, *, params, stage, config, headers=None):  # type: ignore[no-untyped-def]
        return {"query": {"codes": ["99999"]}, "results": []}

    monkeypatch.setattr(geo, "request_json", fake_request_json)
    with pytest.raises(DataAbsent):
        geo.fetch_location(client, "99999", api_key="k", config=CONFIG)


def test_fetch_location_with_incomplete_match_is_format_error(
    client: httpx.Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_request_json(client, url, *, params, stage, config, headers=None):  # type: ignore[no-untyped-def]
        return {"results": {"30336": [{"city": "Atlanta", "latitude": "x"}]}}

    monkeypatch.setattr(geo, "request_json", fake_request_json)
    with pytest.raises(FormatError):
        geo.fetch_location(client, "30336", api_key="k", config=CONFIG)


def test_fetch_location_requires_api_key(client: httpx.Client) -> None:
    with pytest.raises(MissingAPIKeyError):
        geo.fetch_location(client, "30336", api_key=None, config=CONFIG)


def test_fetch_housing_reads_nested_averages(
    client: httpx.Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen: dict = {}

    def fake_request_json(client, url, *, params, stage, config, headers=None):  # type: ignore[no-untyped-def]
        seen["params"] = params
        seen["headers"] = headers
        assert stage == "housing"
        return {
            "zipCode": "30336",
            "saleData": {"averagePrice": 254321.5, "medianPrice": 240000},
            "rentalData": {"averageRent": 1650, "medianRent": 1600},
        }

    monkeypatch.setattr(housing, "request_json", fake_request_json)

    snapshot = housing.fetch_housing(client, "30336", api_key="rk", config=CONFIG)
    assert snapshot.avg_home_price == pytest.approx(254321.5)
    assert snapshot.avg_rent == pytest.approx(1650.0)
    assert seen["params"] == {"zipCode": "30336"}
    assert seen["headers"] == {"X-Api-Key": "rk"}


def test_fetch_housing_defaults_each_amount_independently(
    client: httpx.Client,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_request_json(client, url, *, params, stage, config, headers=None):  # type: ignore[no-untyped-def]
        return {"zipCode": "30336", "rentalData": {"averageRent": 1400}, "saleData": {"averagePrice": None}}

    monkeypatch.setattr(housing, "request_json", fake_request_json)

    snapshot = housing.fetch_housing(client, "30336", api_key="rk", config=CONFIG)
    assert snapshot.avg_home_price == -1
    assert snapshot.avg_rent == pytest.approx(1400.0)


def test_fetch_housing_requires_api_key(client: httpx.Client) -> None:
    with pytest.raises(MissingAPIKeyError):
        housing.fetch_housing(client, "30336", api_key="", config=CONFIG)
