import math

import numpy as np
import pytest

import backend.geofence as geofence
from backend.geofence import (
    EARTH_RADIUS_M,
    REFERENCE_POINT,
    Coordinate,
    GeofenceResult,
    distance_between,
    distance_meters,
    distances_to,
    evaluate,
    is_present,
    presence_message,
    round_meters,
)


def _north_of(origin: Coordinate, meters: float) -> Coordinate:
    return Coordinate(origin.latitude + math.degrees(meters / EARTH_RADIUS_M), origin.longitude)


SAMPLE_POINTS = [
    (0.0, 0.0),
    (42.37718594957353, -71.11540116881643),
    (-33.8688, 151.2093),
    (51.5074, -0.1278),
    (89.9, 179.9),
    (-89.9, -179.9),
]


@pytest.mark.parametrize("lat,lon", SAMPLE_POINTS)
def test_self_distance_is_zero(lat, lon):
    assert distance_meters(lat, lon, lat, lon) == 0.0


def test_reference_point_self_distance_is_zero():
    assert distance_meters(
        42.37718594957353, -71.11540116881643,
        42.37718594957353, -71.11540116881643,
    ) == 0.0


@pytest.mark.parametrize(
    "a,b",
    [
        ((0.0, 0.0), (0.0, 90.0)),
        ((42.37718594957353, -71.11540116881643), (42.3601, -71.0942)),
        ((-33.8688, 151.2093), (51.5074, -0.1278)),
        ((10.0, 170.0), (-10.0, -170.0)),
    ],
)
def test_distance_is_symmetric_and_non_negative(a, b):
    forward = distance_meters(a[0], a[1], b[0], b[1])
    backward = distance_meters(b[0], b[1], a[0], a[1])
    assert forward >= 0.0
    assert forward == pytest.approx(backward, rel=1e-6)


def test_quarter_great_circle():
    # R * pi / 2 for the 6,371 km mean radius
    assert distance_meters(0.0, 0.0, 0.0, 90.0) == pytest.approx(10_007_543.4, abs=1.0)
    assert distance_meters(0.0, 0.0, 0.0, 90.0) == pytest.approx(EARTH_RADIUS_M * math.pi / 2, abs=1e-6)


def test_antipodal_points_are_half_circumference():
    d = distance_meters(0.0, 0.0, 0.0, 180.0)
    assert math.isfinite(d)
    assert d == pytest.approx(EARTH_RADIUS_M * math.pi, abs=1e-3)


def test_out_of_range_inputs_do_not_raise():
    d = distance_meters(120.0, 0.0, 0.0, 400.0)
    assert math.isfinite(d)
    assert d >= 0.0


def test_distance_between_matches_scalar_form():
    a = Coordinate(42.3601, -71.0942)
    assert distance_between(a, REFERENCE_POINT) == distance_meters(
        42.3601, -71.0942, REFERENCE_POINT.latitude, REFERENCE_POINT.longitude,
    )


def test_presence_boundary_is_inclusive():
    point = _north_of(REFERENCE_POINT, 300.0)
    exact = distance_between(point, REFERENCE_POINT)
    assert exact == pytest.approx(300.0, abs=1e-6)
    assert is_present(point, radius_m=exact) is True


def test_exactly_300_meters_counts_as_present(monkeypatch):
    monkeypatch.setattr(geofence, "distance_between", lambda a, b: 300.0)
    assert is_present(Coordinate(0.0, 0.0)) is True


def test_just_beyond_boundary_is_absent():
    point = _north_of(REFERENCE_POINT, 300.0001)
    assert distance_between(point, REFERENCE_POINT) > 300.0
    assert is_present(point) is False


def test_within_range_scenario():
    result = evaluate(_north_of(REFERENCE_POINT, 150.0))
    assert result.is_present is True
    assert round_meters(result.distance_m) == 150
    assert presence_message(result) == "Attendance recorded. You are within range (150m)"


def test_too_far_scenario():
    result = evaluate(_north_of(REFERENCE_POINT, 1000.0))
    assert result.is_present is False
    assert round_meters(result.distance_m) == 1000
    assert presence_message(result) == "Attendance recorded. But you are too far (1000m)"


def test_custom_reference_and_radius():
    campus = Coordinate(40.0, -75.0)
    point = _north_of(campus, 450.0)
    assert evaluate(point, campus, 500.0).is_present is True
    assert evaluate(point, campus, 400.0).is_present is False


def test_round_meters_rounds_half_up():
    assert round_meters(0.5) == 1
    assert round_meters(2.5) == 3
    assert round_meters(2.4999) == 2
    assert round_meters(0.0) == 0


def test_presence_message_uses_rounded_distance():
    assert presence_message(GeofenceResult(distance_m=12.5, is_present=True)) == (
        "Attendance recorded. You are within range (13m)"
    )


def test_vectorized_distances_match_scalar():
    lats = [lat for lat, _ in SAMPLE_POINTS]
    lons = [lon for _, lon in SAMPLE_POINTS]
    out = distances_to(lats, lons, REFERENCE_POINT)

    assert isinstance(out, np.ndarray)
    assert out.shape == (len(SAMPLE_POINTS),)
    for (lat, lon), d in zip(SAMPLE_POINTS, out):
        expected = distance_meters(lat, lon, REFERENCE_POINT.latitude, REFERENCE_POINT.longitude)
        assert float(d) == pytest.approx(expected, rel=1e-9, abs=1e-6)


def test_vectorized_distances_empty_input():
    assert distances_to([], []).shape == (0,)
