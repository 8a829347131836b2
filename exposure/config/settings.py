"""Runtime configuration resolved from the environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from exposure.domain import constants
from exposure.domain.enums import GenerationTier
from exposure.domain.models import Coordinate

_TRUTHY = {"1", "true", "yes", "on"}
_DEFAULT_DB_PATH = Path("data") / "exposure.sqlite3"
_DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
_DEFAULT_USER_AGENT = "exposure-planner/1.0"


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def resolve_places_provider() -> str:
    raw = os.getenv("PLACES_PROVIDER", "").strip().lower()
    return raw if raw in {"mock", "nominatim"} else "mock"


def resolve_persistence_backend() -> str:
    raw = os.getenv("EXPOSURE_PERSISTENCE", "").strip().lower()
    return raw if raw in {"sqlite", "memory"} else "sqlite"


def resolve_db_path() -> Path:
    raw = os.getenv("EXPOSURE_DB", "").strip()
    return Path(raw) if raw else _DEFAULT_DB_PATH


def nominatim_base_url() -> str:
    return (os.getenv("NOMINATIM_BASE_URL", "").strip() or _DEFAULT_NOMINATIM_URL).rstrip("/")


def nominatim_user_agent() -> str:
    return os.getenv("NOMINATIM_USER_AGENT", "").strip() or _DEFAULT_USER_AGENT


def location_timeout_seconds() -> float:
    return max(0.0, _float_env("LOCATION_TIMEOUT_SECONDS", 2.0))


def static_position() -> Optional[Coordinate]:
    lat = os.getenv("EXPOSURE_LAT", "").strip()
    lon = os.getenv("EXPOSURE_LON", "").strip()
    if not lat or not lon:
        return None
    try:
        return Coordinate(lat=float(lat), lon=float(lon))
    except ValueError:
        return None


def fault_injection_enabled() -> bool:
    return _is_enabled(os.getenv("ENABLE_TOOL_FAULT_INJECTION"))


class TierSettings(BaseModel):
    search_radius_m: float
    min_distance_m: float
    max_distance_m: float
    base_wait_seconds: int
    wait_step_seconds: int


def _tier(tier: GenerationTier) -> TierSettings:
    low, high = constants.TIER_DISTANCE_BAND[tier]
    base, step = constants.TIER_WAIT_SCHEDULE[tier]
    return TierSettings(
        search_radius_m=constants.TIER_SEARCH_RADIUS_M[tier],
        min_distance_m=low,
        max_distance_m=high,
        base_wait_seconds=base,
        wait_step_seconds=step,
    )


class GenerationSettings(BaseModel):
    categories: list[str] = Field(default_factory=lambda: list(constants.DEFAULT_SEARCH_CATEGORIES))
    broad_query: str = constants.BROAD_QUERY
    hierarchical_max_targets: int = constants.HIERARCHICAL_MAX_TARGETS
    fallback_max_raw_results: int = constants.FALLBACK_MAX_RAW_RESULTS
    default_plan_name: str = constants.DEFAULT_PLAN_NAME
    tiers: dict[GenerationTier, TierSettings] = Field(
        default_factory=lambda: {tier: _tier(tier) for tier in GenerationTier}
    )

    def tier(self, tier: GenerationTier) -> TierSettings:
        return self.tiers[tier]


class ProviderSnapshot(BaseModel):
    places_provider: str = Field(default="mock")
    persistence_backend: str = Field(default="sqlite")
    db_path: str = Field(default=str(_DEFAULT_DB_PATH))
    static_location: bool = Field(default=False)
    fault_injection: bool = Field(default=False)


def resolve_provider_snapshot() -> ProviderSnapshot:
    return ProviderSnapshot(
        places_provider=resolve_places_provider(),
        persistence_backend=resolve_persistence_backend(),
        db_path=str(resolve_db_path()),
        static_location=static_position() is not None,
        fault_injection=fault_injection_enabled(),
    )


__all__ = [
    "GenerationSettings",
    "ProviderSnapshot",
    "TierSettings",
    "location_timeout_seconds",
    "nominatim_base_url",
    "nominatim_user_agent",
    "resolve_db_path",
    "resolve_persistence_backend",
    "resolve_places_provider",
    "resolve_provider_snapshot",
    "static_position",
]
