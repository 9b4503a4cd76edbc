"""Tests for haversine distance, trip distance and the fallback home."""
from __future__ import annotations

import math

import pytest

from conftest import HOME, KM_LAT_E7, north_of
from drone_agent.geo import DEFAULT_CENTER, EARTH_RADIUS_KM, distance, fallback_home, km_to_miles, trip_distance
from drone_agent.models import E7, Coordinate


def test_distance_to_self_is_zero():
    for p in (HOME, Coordinate(0, 0), Coordinate(-337000000, 1512000000)):
        assert distance(p, p) == 0


def test_distance_is_symmetric():
    a = HOME
    b = Coordinate(407128000, -740060000)  # New York
    assert distance(a, b) == distance(b, a)
    assert distance(a, b) == pytest.approx(306, abs=2)


def test_one_km_of_latitude():
    assert distance(HOME, north_of(HOME, KM_LAT_E7)) == pytest.approx(1.0, abs=0.001)


def test_trip_distance_is_sum_of_legs():
    s = HOME
    p = north_of(HOME, 2 * KM_LAT_E7)
    d = Coordinate(HOME.lat, HOME.lon + 150000)
    assert trip_distance(s, p, d) == distance(s, p) + distance(p, d) + distance(d, s)


def test_km_to_miles():
    assert km_to_miles(1.609344) == pytest.approx(1.0, abs=1e-5)


def test_fallback_home_is_stable_and_nearby():
    a = fallback_home("0xabc")
    assert a == fallback_home("0xabc")
    assert a != fallback_home("0xdef")
    center = Coordinate(round(DEFAULT_CENTER[0] * E7), round(DEFAULT_CENTER[1] * E7))
    assert distance(center, a) <= 10.5


def test_antipodal_points_do_not_raise():
    a = Coordinate(-834308498, -1752063631)
    b = Coordinate(834308498, 47936369)
    half_circumference = math.pi * EARTH_RADIUS_KM
    assert distance(a, b) == pytest.approx(half_circumference, rel=1e-6)
    assert distance(Coordinate(0, 0), Coordinate(0, 1800000000)) == pytest.approx(half_circumference, rel=1e-9)
