"""Human-readable plan summaries and wait-time formatting."""

from __future__ import annotations

from typing import Sequence

from exposure.domain.enums import LifecycleState
from exposure.domain.models import ExposureTarget
from exposure.planner.distance import DistanceFn, haversine_m

_METRES_PER_MILE = 1609.34
_FEET_PER_METRE = 3.28084
_TENTH_MILE_M = 160.934


def route_length_m(targets: Sequence[ExposureTarget], distance_fn: DistanceFn = haversine_m) -> float:
    """Sum of straight-line legs between consecutive active targets."""
    ordered = sorted(
        (t for t in targets if t.lifecycle == LifecycleState.ACTIVE),
        key=lambda t: t.order_index,
    )
    return sum(
        distance_fn(a.lat, a.lon, b.lat, b.lon)
        for a, b in zip(ordered, ordered[1:])
    )


def format_distance(metres: float, *, use_miles: bool = False) -> str:
    if use_miles:
        if metres < _TENTH_MILE_M:
            return f"{metres * _FEET_PER_METRE:.0f} ft"
        return f"{metres / _METRES_PER_MILE:.2f} mi"
    if metres < 100:
        return f"{metres:.0f} m"
    return f"{metres / 1000.0:.2f} km"


def plan_summary(targets: Sequence[ExposureTarget], *, use_miles: bool = False) -> str:
    count = sum(1 for t in targets if t.lifecycle == LifecycleState.ACTIVE)
    if count == 0:
        return "0 Targets"
    plural = "" if count == 1 else "s"
    distance = format_distance(route_length_m(targets), use_miles=use_miles)
    return f"{count} Target{plural} • {distance}"


def format_wait_time(seconds: int) -> str:
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    if minutes and remainder:
        return f"{minutes}m {remainder}s"
    if minutes:
        return f"{minutes}m"
    return f"{remainder}s"


def format_wait_time_short(seconds: int) -> str:
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{remainder:02d}"


__all__ = [
    "format_distance",
    "format_wait_time",
    "format_wait_time_short",
    "plan_summary",
    "route_length_m",
]
