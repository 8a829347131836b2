"""OpenStreetMap Nominatim reverse geocoding."""

from __future__ import annotations

from typing import Optional

from exposure.adapters.places.real import _http, _street_of
from exposure.config.settings import nominatim_base_url
from exposure.domain.models import Coordinate
from exposure.infrastructure.cache import geocode_cache, region_cache_key


async def reverse_geocode(coordinate: Coordinate) -> Optional[str]:
    cache_key = region_cache_key("reverse", "", coordinate, 0)
    cached = geocode_cache.get(cache_key)
    if cached is not None:
        return cached or None

    data = await _http.get(
        f"{nominatim_base_url()}/reverse",
        params={
            "lat": str(coordinate.lat),
            "lon": str(coordinate.lon),
            "format": "jsonv2",
            "addressdetails": "1",
            "zoom": "17",
        },
    )
    street = _street_of(data.get("address")) if isinstance(data, dict) else None
    geocode_cache.set(cache_key, street or "")
    return street
