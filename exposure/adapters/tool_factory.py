"""Concrete tool selection and wiring."""

from __future__ import annotations

import logging

from exposure.adapters.fault_injection import wrap_tool_with_fault_injection
from exposure.adapters.geocoding import mock as mock_geocoding
from exposure.adapters.location.static import StaticLocationProvider
from exposure.adapters.places import mock as mock_places
from exposure.config.settings import fault_injection_enabled, resolve_places_provider, static_position
from exposure.security.redact import redact_sensitive

_logger = logging.getLogger("exposure.tools")


def get_place_search_tool():
    if resolve_places_provider() == "nominatim":
        try:
            from exposure.adapters.places import real as real_places

            return wrap_tool_with_fault_injection("places", real_places)
        except Exception as exc:
            _logger.warning(
                "Failed to load nominatim places adapter, fallback to mock: %s",
                redact_sensitive(str(exc)),
            )
    return wrap_tool_with_fault_injection("places", mock_places)


def get_reverse_geocoder():
    if resolve_places_provider() == "nominatim":
        try:
            from exposure.adapters.geocoding import real as real_geocoding

            return wrap_tool_with_fault_injection("geocoder", real_geocoding)
        except Exception as exc:
            _logger.warning(
                "Failed to load nominatim geocoding adapter, fallback to mock: %s",
                redact_sensitive(str(exc)),
            )
    return wrap_tool_with_fault_injection("geocoder", mock_geocoding)


def get_location_provider():
    return wrap_tool_with_fault_injection("location", StaticLocationProvider.from_settings())


def describe_active_tools() -> dict[str, str]:
    provider = resolve_places_provider()
    return {
        "places": provider,
        "geocoder": provider,
        "location": "static" if static_position() is not None else "unavailable",
        "fault_injection": "true" if fault_injection_enabled() else "false",
    }


__all__ = [
    "describe_active_tools",
    "get_location_provider",
    "get_place_search_tool",
    "get_reverse_geocoder",
]
