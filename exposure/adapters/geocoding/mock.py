"""Mock reverse geocoder: street of the nearest fixture place."""

from __future__ import annotations

from typing import Optional

from exposure.adapters.places.mock import load_fixture_places
from exposure.domain.models import Coordinate
from exposure.planner.distance import haversine_m

MAX_MATCH_DISTANCE_M = 250.0


async def reverse_geocode(coordinate: Coordinate) -> Optional[str]:
    best: Optional[tuple[float, str]] = None
    for raw in load_fixture_places():
        street = raw.get("street")
        if not street:
            continue
        distance = haversine_m(coordinate.lat, coordinate.lon, raw["lat"], raw["lon"])
        if distance <= MAX_MATCH_DISTANCE_M and (best is None or distance < best[0]):
            best = (distance, street)
    return best[1] if best else None
