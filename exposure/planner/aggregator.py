"""Candidate aggregator: concurrent multi-category search, merged and deduplicated."""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Sequence

from exposure.domain.models import CandidatePlace, Coordinate
from exposure.infrastructure.logging import StructuredLogger, get_logger
from exposure.planner.distance import DistanceFn, haversine_m
from exposure.planner.locator import locate_candidates
from exposure.tools.interfaces import PlaceSearchTool


def dedupe_by_coordinate(places: Iterable[CandidatePlace]) -> list[CandidatePlace]:
    """Drop places whose exact "lat,lon" was already seen; first one wins."""
    seen: set[str] = set()
    unique: list[CandidatePlace] = []
    for place in places:
        key = place.coordinate.key
        if key in seen:
            continue
        seen.add(key)
        unique.append(place)
    return unique


def sort_by_distance(places: Iterable[CandidatePlace]) -> list[CandidatePlace]:
    return sorted(places, key=lambda p: p.distance_m)


async def aggregate_candidates(
    search_tool: PlaceSearchTool,
    *,
    origin: Coordinate,
    categories: Sequence[str],
    radius_m: float,
    min_distance_m: float,
    max_distance_m: float,
    logger: Optional[StructuredLogger] = None,
    distance_fn: DistanceFn = haversine_m,
) -> list[CandidatePlace]:
    log = logger or get_logger()
    batches = await asyncio.gather(
        *(
            locate_candidates(
                search_tool,
                origin=origin,
                query=category,
                radius_m=radius_m,
                min_distance_m=min_distance_m,
                max_distance_m=max_distance_m,
                logger=log,
                distance_fn=distance_fn,
            )
            for category in categories
        )
    )
    # gather keeps category order, so dedup is deterministic
    merged = [place for batch in batches for place in batch]
    unique = sort_by_distance(dedupe_by_coordinate(merged))
    log.summary(
        stage="aggregate",
        categories=len(categories),
        merged=len(merged),
        unique=len(unique),
    )
    return unique
