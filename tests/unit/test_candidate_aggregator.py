from __future__ import annotations

import asyncio
import io

from exposure.domain.models import CandidatePlace, Coordinate
from exposure.infrastructure.logging import StructuredLogger
from exposure.planner.aggregator import aggregate_candidates, dedupe_by_coordinate, sort_by_distance
from exposure.tools.interfaces import PlaceResult

ORIGIN = Coordinate(lat=10.0, lon=10.0)


def _candidate(name: str, lon: float, distance: float) -> CandidatePlace:
    return CandidatePlace(name=name, coordinate=Coordinate(lat=10.0, lon=lon), distance_m=distance)


def test_dedupe_keeps_first_occurrence_and_is_idempotent():
    places = [
        _candidate("a", 10.001, 100),
        _candidate("b", 10.002, 200),
        _candidate("a-dup", 10.001, 100),
    ]
    once = dedupe_by_coordinate(places)
    assert [p.name for p in once] == ["a", "b"]
    assert dedupe_by_coordinate(once) == once


def test_dedupe_uses_exact_coordinates():
    places = [_candidate("a", 10.001, 100), _candidate("near-a", 10.0010001, 100)]
    assert len(dedupe_by_coordinate(places)) == 2


def test_sort_by_distance_is_stable():
    places = [_candidate("x", 10.003, 300), _candidate("y", 10.001, 100), _candidate("z", 10.002, 100)]
    assert [p.name for p in sort_by_distance(places)] == ["y", "z", "x"]


class _ConcurrentSearchTool:
    """Tracks how many searches are in flight at once."""

    def __init__(self, results_by_query: dict[str, list[PlaceResult]]) -> None:
        self._results = results_by_query
        self.inflight = 0
        self.max_inflight = 0

    async def search_places(self, params):
        self.inflight += 1
        self.max_inflight = max(self.max_inflight, self.inflight)
        await asyncio.sleep(0.01)
        self.inflight -= 1
        return list(self._results.get(params.query, []))


def test_aggregate_fans_out_merges_and_sorts():
    table: dict[tuple[float, float], float] = {}

    def _result(name: str, lon: float, distance: float) -> PlaceResult:
        table[(10.0, lon)] = distance
        return PlaceResult(name=name, coordinate=Coordinate(lat=10.0, lon=lon))

    tool = _ConcurrentSearchTool(
        {
            "shop": [_result("Shop A", 10.001, 400), _result("Shared", 10.002, 150)],
            "cafe": [_result("Shared as cafe", 10.002, 150), _result("Cafe B", 10.003, 90)],
            "park": [_result("Too far", 10.004, 1200)],
        }
    )
    places = asyncio.run(
        aggregate_candidates(
            tool,
            origin=ORIGIN,
            categories=["shop", "cafe", "park"],
            radius_m=5000,
            min_distance_m=50,
            max_distance_m=1000,
            logger=StructuredLogger(output=io.StringIO()),
            distance_fn=lambda _a, _b, lat, lon: table[(lat, lon)],
        )
    )
    assert [p.name for p in places] == ["Cafe B", "Shared", "Shop A"]
    assert tool.max_inflight == 3
