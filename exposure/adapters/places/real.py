"""OpenStreetMap Nominatim place search.

Docs: https://nominatim.org/release-docs/latest/api/Search/
"""

from __future__ import annotations

import math
from typing import Any

from exposure.config.settings import nominatim_base_url, nominatim_user_agent
from exposure.domain.models import Coordinate
from exposure.infrastructure.cache import place_cache, region_cache_key
from exposure.security.http_client import SecureHttpClient
from exposure.shared.exceptions import ToolError
from exposure.tools.interfaces import PlaceResult, PlaceSearchInput

_MAX_RESULTS = 40
_METRES_PER_DEGREE = 111_320.0

_http = SecureHttpClient(
    tool_name="nominatim",
    max_retries=1,
    headers={"User-Agent": nominatim_user_agent()},
)


def _viewbox(center: Coordinate, radius_m: float) -> str:
    """`left,top,right,bottom` box around center."""
    dlat = radius_m / _METRES_PER_DEGREE
    dlon = radius_m / (_METRES_PER_DEGREE * max(0.2, math.cos(math.radians(center.lat))))
    return f"{center.lon - dlon},{center.lat + dlat},{center.lon + dlon},{center.lat - dlat}"


def _safe_str(val: object) -> str | None:
    if isinstance(val, str) and val.strip():
        return val
    return None


def _street_of(address: Any) -> str | None:
    if not isinstance(address, dict):
        return None
    for key in ("road", "pedestrian", "footway", "street"):
        street = _safe_str(address.get(key))
        if street:
            return street
    return None


def _to_result(raw: dict) -> PlaceResult:
    display = _safe_str(raw.get("display_name")) or ""
    return PlaceResult(
        name=_safe_str(raw.get("name")),
        placemark_name=_safe_str(display.split(",")[0].strip()) if display else None,
        street=_street_of(raw.get("address")),
        coordinate=Coordinate(lat=float(raw["lat"]), lon=float(raw["lon"])),
    )


async def search_places(params: PlaceSearchInput) -> list[PlaceResult]:
    """Bounded free-text search; results keep Nominatim's ranking order."""
    cache_key = region_cache_key("search", params.query, params.center, params.radius_m)
    cached = place_cache.get(cache_key)
    if cached is not None:
        return cached

    data = await _http.get(
        f"{nominatim_base_url()}/search",
        params={
            "q": params.query,
            "format": "jsonv2",
            "addressdetails": "1",
            "limit": str(_MAX_RESULTS),
            "viewbox": _viewbox(params.center, params.radius_m),
            "bounded": "1",
        },
    )
    if not isinstance(data, list):
        raise ToolError("nominatim", f"unexpected search payload: {type(data).__name__}")

    results: list[PlaceResult] = []
    for raw in data:
        try:
            results.append(_to_result(raw))
        except (KeyError, TypeError, ValueError):
            continue

    place_cache.set(cache_key, results)
    return results
