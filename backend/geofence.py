"""Great-circle distance and the presence check around the classroom."""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

EARTH_RADIUS_M = 6_371_000.0  # mean radius, spherical model
PRESENCE_RADIUS_M = 300.0


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


# Science and Engineering Complex, Allston.
REFERENCE_POINT = Coordinate(42.37718594957353, -71.11540116881643)


@dataclass(frozen=True)
class GeofenceResult:
    distance_m: float
    is_present: bool


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance in meters between two lat/lon points given in degrees.

    Inputs are not range checked: |lat| > 90 yields a number, not an error.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # rounding can push a just outside [0, 1] near coincident or antipodal points
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    return distance_meters(a.latitude, a.longitude, b.latitude, b.longitude)


def evaluate(
    coord: Coordinate,
    reference: Coordinate = REFERENCE_POINT,
    radius_m: float = PRESENCE_RADIUS_M,
) -> GeofenceResult:
    distance = distance_between(coord, reference)
    return GeofenceResult(distance_m=distance, is_present=distance <= radius_m)


def is_present(
    coord: Coordinate,
    reference: Coordinate = REFERENCE_POINT,
    radius_m: float = PRESENCE_RADIUS_M,
) -> bool:
    """True when coord lies inside or exactly on the presence circle."""
    return evaluate(coord, reference, radius_m).is_present


def distances_to(
    latitudes: Sequence[float],
    longitudes: Sequence[float],
    reference: Coordinate = REFERENCE_POINT,
) -> np.ndarray:
    """Vectorized distance_meters from each (lat, lon) pair to reference."""
    lat = np.radians(np.asarray(latitudes, dtype=np.float64))
    lon = np.radians(np.asarray(longitudes, dtype=np.float64))
    ref_lat = math.radians(reference.latitude)
    ref_lon = math.radians(reference.longitude)

    d_phi = ref_lat - lat
    d_lambda = ref_lon - lon
    a = np.sin(d_phi / 2.0) ** 2 + np.cos(lat) * math.cos(ref_lat) * np.sin(d_lambda / 2.0) ** 2
    a = np.clip(a, 0.0, 1.0)
    c = 2.0 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def round_meters(value: float) -> int:
    # half up, not round()'s banker's rounding
    return int(math.floor(value + 0.5))


def presence_message(result: GeofenceResult) -> str:
    meters = round_meters(result.distance_m)
    if result.is_present:
        return f"Attendance recorded. You are within range ({meters}m)"
    return f"Attendance recorded. But you are too far ({meters}m)"
