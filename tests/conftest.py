"""pytest global fixtures: test environment isolation."""

import pytest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Mock adapters and in-memory persistence by default; no network."""
    for name in (
        "PLACES_PROVIDER",
        "NOMINATIM_BASE_URL",
        "NOMINATIM_USER_AGENT",
        "EXPOSURE_LAT",
        "EXPOSURE_LON",
        "EXPOSURE_DB",
        "LOCATION_TIMEOUT_SECONDS",
        "ENABLE_TOOL_FAULT_INJECTION",
        "TOOL_FAULT_INJECTION",
        "TOOL_FAULT_RATE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EXPOSURE_PERSISTENCE", "memory")

    from exposure.infrastructure.cache import geocode_cache, place_cache

    place_cache.clear()
    geocode_cache.clear()
    yield
    place_cache.clear()
    geocode_cache.clear()
