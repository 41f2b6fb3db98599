import pytest

from pinmap.services.coordinates import (
    format_coordinates,
    is_blank,
    normalize_coordinates,
    parse_coordinates,
)


@pytest.mark.parametrize(
    "lng_lat",
    [(36.8219, -1.2921), (-180.0, -90.0), (180.0, 90.0), (0.0, 0.0), (-74.006, 40.7128)],
)
def test_format_then_parse_returns_same_pair(lng_lat):
    assert parse_coordinates(format_coordinates(lng_lat)) == lng_lat


def test_longitude_comes_first():
    assert format_coordinates([151.2093, -33.8688]) == "151.2093, -33.8688"
    assert parse_coordinates("151.2093, -33.8688") == (151.2093, -33.8688)


@pytest.mark.parametrize(
    "raw",
    ["180.0001, 0", "0, 90.0001", "-180.0001, 0", "0, -90.0001", "nan, 1", "inf, 1", "1", "1,2,3", "a, b", ""],
)
def test_out_of_range_or_malformed_is_rejected(raw):
    assert parse_coordinates(raw) is None


def test_exact_bounds_are_accepted():
    assert parse_coordinates("-180, -90") == (-180.0, -90.0)
    assert parse_coordinates([180, 90]) == (180.0, 90.0)


def test_sequences_are_accepted_and_normalized():
    assert normalize_coordinates([1, 1]) == "1.0, 1.0"
    assert normalize_coordinates(" 1 ,1 ") == "1.0, 1.0"
    assert parse_coordinates([True, 1]) is None
    assert parse_coordinates([1.0]) is None


def test_blank_values():
    assert is_blank(None)
    assert is_blank("   ")
    assert is_blank([])
    assert not is_blank("1, 1")
