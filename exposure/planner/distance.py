"""Great-circle distance helpers (metres)."""

from __future__ import annotations

import math
from typing import Callable

from exposure.domain.models import Coordinate

EARTH_RADIUS_M = 6371000.0

DistanceFn = Callable[[float, float, float, float], float]


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(a: Coordinate, b: Coordinate, distance_fn: DistanceFn = haversine_m) -> float:
    return distance_fn(a.lat, a.lon, b.lat, b.lon)


def within_band(distance_m: float, min_m: float, max_m: float) -> bool:
    return min_m <= distance_m <= max_m

