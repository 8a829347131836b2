"""Candidate locator: one place-search query filtered to a distance band."""

from __future__ import annotations

import time
from typing import Optional

from exposure.domain.constants import FALLBACK_PLACE_NAME
from exposure.domain.models import CandidatePlace, Coordinate
from exposure.infrastructure.logging import StructuredLogger, get_logger
from exposure.planner.distance import DistanceFn, distance_between, haversine_m, within_band
from exposure.tools.interfaces import PlaceResult, PlaceSearchInput, PlaceSearchTool


def resolve_display_name(result: PlaceResult, fallback: str = FALLBACK_PLACE_NAME) -> str:
    for candidate in (result.name, result.placemark_name, result.street):
        if candidate and candidate.strip():
            return candidate
    return fallback


def _record_search(
    logger: StructuredLogger,
    *,
    query: str,
    started: float,
    ok: bool,
    returned_count: int = 0,
    kept_count: int = 0,
    error_code: str = "",
) -> None:
    logger.tool_call(
        "places.search",
        query=query,
        latency_ms=round((time.perf_counter() - started) * 1000.0, 2),
        ok=ok,
        returned_count=returned_count,
        kept_count=kept_count,
        error_code=error_code,
    )


async def locate_candidates(
    search_tool: PlaceSearchTool,
    *,
    origin: Coordinate,
    query: str,
    radius_m: float,
    min_distance_m: float,
    max_distance_m: float,
    max_raw_results: Optional[int] = None,
    fallback_name: str = FALLBACK_PLACE_NAME,
    logger: Optional[StructuredLogger] = None,
    distance_fn: DistanceFn = haversine_m,
) -> list[CandidatePlace]:
    """Search one query around origin and keep results inside the band.

    Search failures are absorbed: the query contributes no candidates.
    """
    log = logger or get_logger()
    started = time.perf_counter()
    try:
        raw = await search_tool.search_places(
            PlaceSearchInput(query=query, center=origin, radius_m=radius_m)
        )
    except Exception as exc:
        _record_search(log, query=query, started=started, ok=False, error_code=type(exc).__name__)
        log.warning("locate", f"place search failed for query={query!r}: {exc}")
        return []

    if max_raw_results is not None:
        raw = raw[:max_raw_results]

    places: list[CandidatePlace] = []
    for item in raw:
        distance = distance_between(origin, item.coordinate, distance_fn)
        if not within_band(distance, min_distance_m, max_distance_m):
            continue
        places.append(
            CandidatePlace(
                name=resolve_display_name(item, fallback_name),
                coordinate=item.coordinate,
                distance_m=distance,
            )
        )

    _record_search(
        log,
        query=query,
        started=started,
        ok=True,
        returned_count=len(raw),
        kept_count=len(places),
    )
    return places
