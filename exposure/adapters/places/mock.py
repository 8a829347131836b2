"""Mock place search backed by local JSON fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from exposure.domain.constants import BROAD_QUERY
from exposure.domain.models import Coordinate
from exposure.planner.distance import distance_between
from exposure.shared.exceptions import ToolError
from exposure.tools.interfaces import PlaceResult, PlaceSearchInput

DATA_FILE = Path(__file__).resolve().parents[2] / "data" / "places_v1.json"
_cache: Optional[list[dict]] = None


def load_fixture_places() -> list[dict]:
    global _cache
    if _cache is not None:
        return _cache
    if not DATA_FILE.exists():
        raise ToolError("mock_places", f"Data file not found: {DATA_FILE}")
    with open(DATA_FILE, encoding="utf-8") as f:
        _cache = json.load(f)
    return _cache


def _matches(raw: dict, query: str) -> bool:
    if query == BROAD_QUERY:
        return True
    if query in (c.lower() for c in raw.get("categories", [])):
        return True
    return query in raw.get("name", "").lower() or query == raw.get("street", "").lower()


def _to_result(raw: dict) -> PlaceResult:
    return PlaceResult(
        name=raw.get("name") or None,
        placemark_name=raw.get("placemark_name") or None,
        street=raw.get("street") or None,
        coordinate=Coordinate(lat=raw["lat"], lon=raw["lon"]),
    )


async def search_places(params: PlaceSearchInput) -> list[PlaceResult]:
    query = params.query.strip().lower()
    results: list[PlaceResult] = []
    for raw in load_fixture_places():
        if not _matches(raw, query):
            continue
        result = _to_result(raw)
        if distance_between(params.center, result.coordinate) > params.radius_m:
            continue
        results.append(result)
    return results
