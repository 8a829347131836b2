from __future__ import annotations

import math

import pytest

from exposure.planner.distance import EARTH_RADIUS_M, haversine_m, within_band


def test_haversine_zero_for_same_point():
    assert haversine_m(51.5, -0.12, 51.5, -0.12) == 0.0


def test_haversine_one_degree_of_latitude():
    expected = EARTH_RADIUS_M * math.pi / 180.0
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)


def test_haversine_is_symmetric():
    a = haversine_m(48.8566, 2.3522, 51.5074, -0.1278)
    b = haversine_m(51.5074, -0.1278, 48.8566, 2.3522)
    assert a == pytest.approx(b)
    assert 340_000 < a < 345_000


@pytest.mark.parametrize(
    ("distance", "expected"),
    [(49.99, False), (50.0, True), (500.0, True), (1000.0, True), (1000.01, False)],
)
def test_within_band_is_inclusive(distance: float, expected: bool):
    assert within_band(distance, 50.0, 1000.0) is expected

