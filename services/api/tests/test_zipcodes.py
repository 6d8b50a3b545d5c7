"""Tests for zip extraction and distance heuristics."""

import pytest

from rewards.services.zipcodes import (
    UNKNOWN_COORDINATE_PENALTY,
    CoordinateZipDistance,
    NumericZipDistance,
    default_zip_distance,
    extract_zip,
    haversine_miles,
    load_zip_coordinates,
    normalize_requested_zip,
)


class TestExtractZip:
    def test_address_with_zip(self):
        assert extract_zip("1 Market St, San Francisco, CA 94105") == "94105"

    def test_first_five_digit_run_wins(self):
        assert extract_zip("Suite 12345, Oakland CA 94607") == "12345"

    def test_zip_plus_four(self):
        assert extract_zip("500 Castro St, CA 94114-2204") == "94114"

    def test_longer_digit_runs_are_not_zips(self):
        assert extract_zip("Call 4155550199 for directions") is None

    @pytest.mark.parametrize("text", [None, "", "No address yet", "CA 941"])
    def test_no_zip(self, text):
        assert extract_zip(text) is None


class TestNormalizeRequestedZip:
    def test_plain(self):
        assert normalize_requested_zip("94105") == "94105"

    def test_plus_four(self):
        assert normalize_requested_zip("94105-1234") == "94105"
        assert normalize_requested_zip("941051234") == "94105"

    @pytest.mark.parametrize("value", ["", "9410", "abcde", "94105-12", "94105 San Francisco"])
    def test_rejects_malformed(self, value):
        assert normalize_requested_zip(value) is None


def test_numeric_distance_is_absolute_difference():
    distance = NumericZipDistance()
    assert distance("94105", "94110") == 5
    assert distance("94110", "94105") == 5
    assert distance("94105", "94105") == 0


def test_coordinate_distance_uses_haversine_when_known():
    distance = CoordinateZipDistance(
        {
            "94105": (37.7864, -122.3892),
            "94110": (37.7485, -122.4184),
        }
    )
    miles = distance("94105", "94110")
    assert 2.5 < miles < 3.5
    assert distance("94105", "94105") == 0


def test_coordinate_distance_penalizes_unknown_zips():
    distance = CoordinateZipDistance({"94105": (37.7864, -122.3892)})
    assert distance("94105", "94200") == 95 + UNKNOWN_COORDINATE_PENALTY


def test_haversine_symmetry():
    a = haversine_miles(34.4208, -119.6982, 32.7157, -117.1611)
    b = haversine_miles(32.7157, -117.1611, 34.4208, -119.6982)
    assert a == pytest.approx(b)
    assert 180 < a < 200


def test_load_zip_coordinates(tmp_path):
    path = tmp_path / "zips.json"
    path.write_text(
        '{"94105": [37.7864, -122.3892], "94107-1234": [37.7621, -122.3971],'
        ' "bogus": [1, 2], "94110": [37.7485]}',
        encoding="utf-8",
    )
    assert load_zip_coordinates(str(path)) == {
        "94105": (37.7864, -122.3892),
        "94107": (37.7621, -122.3971),
    }


def test_default_zip_distance_follows_settings(tmp_path, monkeypatch: pytest.MonkeyPatch):
    from rewards.settings import get_settings

    assert isinstance(default_zip_distance(), NumericZipDistance)

    path = tmp_path / "zips.json"
    path.write_text('{"94105": [37.7864, -122.3892]}', encoding="utf-8")
    monkeypatch.setenv("ZIP_COORDINATES_PATH", str(path))
    get_settings.cache_clear()

    distance = default_zip_distance()
    assert isinstance(distance, CoordinateZipDistance)
    assert distance.coordinates == {"94105": (37.7864, -122.3892)}
