from __future__ import annotations

import logging

import pytest

from backend.app import stats
from backend.app.stats import AGE_BUCKET_CODES, AgeBucket


def _b01001(n: int) -> str:
    return f"B01001_{n:03d}E"


def _age_map() -> dict[str, str]:
    # Each code's value is its column number, so bucket sums are easy to check by hand.
    return {_b01001(n): str(n) for n in range(3, 50) if n != 26}


def test_bucket_table_sizes_and_boundaries() -> None:
    assert len(AGE_BUCKET_CODES[AgeBucket.UNDER_18]) == 8
    assert len(AGE_BUCKET_CODES[AgeBucket.AGE_18_TO_44]) == 16
    assert len(AGE_BUCKET_CODES[AgeBucket.AGE_45_TO_64]) == 10
    assert len(AGE_BUCKET_CODES[AgeBucket.AGE_65_PLUS]) == 12

    # "18 and 19 years" for both sexes opens the 18 to 44 bucket.
    assert "B01001_007E" in AGE_BUCKET_CODES[AgeBucket.AGE_18_TO_44]
    assert "B01001_031E" in AGE_BUCKET_CODES[AgeBucket.AGE_18_TO_44]
    assert "B01001_007E" not in AGE_BUCKET_CODES[AgeBucket.UNDER_18]


def test_buckets_are_disjoint_and_cover_requested_age_codes() -> None:
    all_codes = [code for codes in AGE_BUCKET_CODES.values() for code in codes]
    assert len(all_codes) == len(set(all_codes)) == 46
    expected = {f"B01001_{n:03d}E" for n in (*range(3, 26), *range(27, 50))}
    assert set(all_codes) == expected
    # Totals (002 male, 026 female) never land in a bucket.
    assert "B01001_002E" not in all_codes
    assert "B01001_026E" not in all_codes


def test_bucket_sums_match_hand_computed_values() -> None:
    data = _age_map()
    assert stats.age_bucket_population(data, AgeBucket.UNDER_18) == sum([3, 4, 5, 6, 27, 28, 29, 30])
    assert stats.age_bucket_population(data, AgeBucket.AGE_18_TO_44) == sum(
        list(range(7, 15)) + list(range(31, 39))
    )
    assert stats.age_bucket_population(data, AgeBucket.AGE_45_TO_64) == sum(
        list(range(15, 20)) + list(range(39, 44))
    )
    assert stats.age_bucket_population(data, AgeBucket.AGE_65_PLUS) == sum(
        list(range(20, 26)) + list(range(44, 50))
    )

    total = sum(stats.age_bucket_population(data, bucket) for bucket in AgeBucket)
    assert total == sum(int(v) for v in data.values())


def test_bucket_ignores_codes_outside_its_group() -> None:
    data = {"B01001_003E": "100", "B01003_001E": "5000", "B02001_002E": "4000"}
    assert stats.age_bucket_population(data, AgeBucket.UNDER_18) == 100
    assert stats.age_bucket_population(data, AgeBucket.AGE_65_PLUS) == 0


@pytest.mark.parametrize("value", ["null", "NULL", "Null", "-", "", "  "])
def test_suppressed_values_count_as_zero(value: str) -> None:
    data = {"B01001_003E": value, "B01001_004E": "10"}
    assert stats.parse_count(data, "B01001_003E") == 0
    assert stats.age_bucket_population(data, AgeBucket.UNDER_18) == 10


def test_absent_code_and_empty_map_count_as_zero() -> None:
    assert stats.parse_count({}, "B01003_001E") == 0
    assert stats.parse_count(None, "B01003_001E") == 0
    assert stats.age_bucket_population({}, AgeBucket.AGE_45_TO_64) == 0


def test_unparsable_value_logs_and_counts_as_zero(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="backend.app.stats"):
        assert stats.parse_count({"B01003_001E": "12.5"}, "B01003_001E") == 0
        assert stats.parse_count({"B01003_001E": "abc"}, "B01003_001E") == 0
    assert "B01003_001E" in caplog.text


def test_padded_values_parse_as_integers() -> None:
    assert stats.parse_count({"x": " 42 "}, "x") == 42


def test_negative_annotation_values_count_as_zero(caplog: pytest.LogCaptureFixture) -> None:
    data = {"B01003_001E": "1000", "B02001_002E": "-666666666"}
    with caplog.at_level(logging.WARNING, logger="backend.app.stats"):
        assert stats.parse_count(data, "B02001_002E") == 0
        white = next(share for share in stats.race_shares(data) if share.label == "White")
    assert white.count == 0
    assert white.pct == pytest.approx(0.0)
    assert "B02001_002E" in caplog.text
    assert stats.parse_count({"x": "-5"}, "x") == 0


def test_percentage_example() -> None:
    data = {"B01003_001E": "1000", "B02001_002E": "600"}
    white = next(share for share in stats.race_shares(data) if share.label == "White")
    assert white.count == 600
    assert white.pct == pytest.approx(60.0)


def test_percentage_unavailable_when_total_is_zero() -> None:
    assert stats.percentage(10, 0) is None
    assert stats.percentage(0, 0) is None
    assert stats.percentage(5, -1) is None
    assert stats.percentage(1, 4) == pytest.approx(25.0)


def test_summary_with_suppressed_total_reports_unavailable_percentages() -> None:
    data = {"B01003_001E": "-", "B02001_002E": "600", "B01001_003E": "50"}
    summary = stats.build_demographic_summary(data)
    assert summary.total_population == 0
    assert all(share.pct is None for share in summary.race)
    assert all(share.pct is None for share in summary.age)
    assert summary.race[0].count == 600


def test_summary_labels_and_degree_counts() -> None:
    data = {
        "B01003_001E": "2000",
        "B15003_017E": "320",
        "B15003_022E": "null",
        "B01001_020E": "100",
        "B01001_044E": "150",
    }
    summary = stats.build_demographic_summary(data)
    assert [share.label for share in summary.age] == ["Under 18", "18 to 44", "45 to 64", "65 and over"]
    assert [share.label for share in summary.race][0] == "White"
    assert len(summary.race) == 7
    assert summary.bachelors_degrees == 320
    assert summary.doctorate_degrees == 0
    over_65 = summary.age[-1]
    assert over_65.count == 250
    assert over_65.pct == pytest.approx(12.5)
