"""Tiered plan generation: bands, wait schedules, escalation, commit."""

from __future__ import annotations

import asyncio
import io
import threading

import pytest

from exposure.domain.enums import GenerationStatus, GenerationTier, LifecycleState, SyncState
from exposure.domain.exceptions import PlanNotFound
from exposure.domain.models import Coordinate, ExposurePlan, ExposureTarget, WriteResult
from exposure.infrastructure.logging import StructuredLogger
from exposure.persistence.memory_repository import InMemoryExposureRepository
from exposure.planner.generator import PlanGenerator, SingleFlightGuard, stage_targets
from exposure.shared.exceptions import ToolError
from exposure.tools.interfaces import PlaceResult

ORIGIN = Coordinate(lat=10.0, lon=10.0)


class _Places:
    """Builds place results whose distance from ORIGIN is looked up exactly."""

    def __init__(self) -> None:
        self.table: dict[tuple[float, float], float] = {}

    def at(self, distance: float, name: str | None = None, *, same_as: PlaceResult | None = None) -> PlaceResult:
        if same_as is not None:
            return PlaceResult(name=name, coordinate=same_as.coordinate)
        coord = Coordinate(lat=10.0, lon=10.0 + (len(self.table) + 1) * 0.001)
        self.table[(coord.lat, coord.lon)] = distance
        return PlaceResult(name=name if name is not None else f"d{distance:g}", coordinate=coord)

    def distance(self, _lat1: float, _lon1: float, lat2: float, lon2: float) -> float:
        return self.table[(lat2, lon2)]


class _SearchTool:
    def __init__(self, results=None, fail_queries=(), delay: float = 0.0) -> None:
        self._results = results or {}
        self._fail = set(fail_queries)
        self._delay = delay
        self.queries: list[str] = []

    async def search_places(self, params):
        self.queries.append(params.query)
        if self._delay:
            await asyncio.sleep(self._delay)
        if params.query in self._fail:
            raise ToolError("places", f"boom for {params.query}")
        return list(self._results.get(params.query, []))


class _Geocoder:
    def __init__(self, street: str | None = None, error: Exception | None = None) -> None:
        self._street = street
        self._error = error
        self.calls = 0

    async def reverse_geocode(self, coordinate):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._street


class _FailingRepository(InMemoryExposureRepository):
    def replace_targets(self, plan, targets):
        return WriteResult.failure("replace_targets: disk I/O error")


class _ThreadRecordingRepository(InMemoryExposureRepository):
    def __init__(self) -> None:
        super().__init__()
        self.threads: dict[str, int] = {}

    def get_plan(self, plan_id):
        self.threads["get_plan"] = threading.get_ident()
        return super().get_plan(plan_id)

    def replace_targets(self, plan, targets):
        self.threads["replace_targets"] = threading.get_ident()
        return super().replace_targets(plan, targets)


def _setup(results=None, *, street=None, geocode_error=None, plan_name="", repo=None, places=None, **tool_kwargs):
    repo = repo or InMemoryExposureRepository()
    plan = ExposurePlan(name=plan_name)
    repo.save_plan(plan)
    tool = _SearchTool(results, **tool_kwargs)
    geocoder = _Geocoder(street, geocode_error)
    generator = PlanGenerator(
        repository=repo,
        search_tool=tool,
        geocoder=geocoder,
        logger=StructuredLogger(trace_id="test", output=io.StringIO()),
        distance_fn=(places or _Places()).distance,
    )
    return repo, plan, tool, geocoder, generator


def test_hierarchical_tier_filters_sorts_and_schedules_waits():
    p = _Places()
    results = {
        "shop": [p.at(40), p.at(50), p.at(700)],
        "cafe": [p.at(1000), p.at(1001), p.at(300)],
    }
    repo, plan, tool, geocoder, generator = _setup(results, places=p)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.GENERATED
    assert outcome.tier == GenerationTier.HIERARCHICAL
    assert [t.name for t in outcome.targets] == ["d50", "d300", "d700", "d1000"]
    assert [t.order_index for t in outcome.targets] == [0, 1, 2, 3]
    assert [t.wait_time_seconds for t in outcome.targets] == [30, 45, 60, 75]
    assert "nearby" not in tool.queries
    assert geocoder.calls == 0


def test_hierarchical_tier_caps_at_eight_nearest():
    p = _Places()
    results = {"shop": [p.at(d) for d in (900, 100, 800, 200, 700, 300, 600, 400, 500, 950)]}
    _, plan, _, _, generator = _setup(results, places=p)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.target_count == 8
    assert [t.name for t in outcome.targets] == [f"d{d}" for d in (100, 200, 300, 400, 500, 600, 700, 800)]


def test_duplicate_coordinates_across_categories_keep_first_category():
    p = _Places()
    shop = p.at(250, "Corner Shop")
    results = {"shop": [shop], "cafe": [p.at(250, "Corner Cafe", same_as=shop)]}
    _, plan, _, _, generator = _setup(results, places=p)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert [t.name for t in outcome.targets] == ["Corner Shop"]


def test_broad_tier_keeps_service_order_within_first_five():
    p = _Places()
    results = {"nearby": [p.at(10), p.at(60), p.at(1500), p.at(2500), p.at(1800), p.at(100)]}
    repo, plan, tool, geocoder, generator = _setup(results, plan_name="Evening walk", places=p)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.tier == GenerationTier.BROAD
    assert [t.name for t in outcome.targets] == ["d60", "d1500", "d1800"]
    assert [t.wait_time_seconds for t in outcome.targets] == [60, 90, 120]
    assert repo.get_plan(plan.id).name == "Evening walk"
    assert geocoder.calls == 0


def test_street_tier_uses_street_fallback_name():
    p = _Places()
    unnamed = p.at(200)
    unnamed = PlaceResult(coordinate=unnamed.coordinate)
    results = {"Baker Street": [unnamed, p.at(900, "Museum")]}
    _, plan, tool, geocoder, generator = _setup(results, street="Baker Street", places=p)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.GENERATED
    assert outcome.tier == GenerationTier.STREET
    assert [t.name for t in outcome.targets] == ["Baker Street Location", "Museum"]
    assert [t.wait_time_seconds for t in outcome.targets] == [60, 90]
    assert tool.queries[-1] == "Baker Street"


@pytest.mark.parametrize(
    ("street", "error"),
    [(None, None), ("   ", None), (None, ToolError("geocoder", "timeout"))],
)
def test_unresolved_street_is_inconclusive(street, error):
    _, plan, tool, _, generator = _setup({}, street=street, geocode_error=error)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.INCONCLUSIVE
    assert outcome.target_count == 0
    # eight categories plus the broad query, no street search
    assert len(tool.queries) == 9


def test_all_tiers_empty_is_no_candidates():
    _, plan, tool, geocoder, generator = _setup({}, street="Quiet Lane")

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.NO_CANDIDATES
    assert outcome.target_count == 0
    assert tool.queries[-2:] == ["nearby", "Quiet Lane"]
    assert geocoder.calls == 1


def test_category_failure_does_not_abort_hierarchical_tier():
    p = _Places()
    results = {"cafe": [p.at(120, "Bean There")]}
    _, plan, _, _, generator = _setup(results, fail_queries={"shop", "park"}, places=p)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.tier == GenerationTier.HIERARCHICAL
    assert [t.name for t in outcome.targets] == ["Bean There"]


def test_commit_replaces_previous_targets():
    p = _Places()
    repo, plan, _, _, generator = _setup({"shop": [p.at(100, "New")]}, places=p)
    old = [ExposureTarget(plan_id=plan.id, name=f"old{i}", order_index=i) for i in range(3)]
    repo.save_targets(old)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    active = repo.list_active_targets(plan.id)
    assert [t.id for t in active] == [t.id for t in outcome.targets]
    assert [t.name for t in active] == ["New"]
    retired = [t for t in repo.list_all_targets(plan.id) if t.name.startswith("old")]
    assert len(retired) == 3
    assert all(t.lifecycle == LifecycleState.DELETED for t in retired)


def test_commit_names_unnamed_plan_and_marks_pending():
    p = _Places()
    repo, plan, _, _, generator = _setup({"shop": [p.at(100)]}, places=p)
    repo.mark_plan_synced(plan.id)

    asyncio.run(generator.generate(plan.id, ORIGIN))

    stored = repo.get_plan(plan.id)
    assert stored.name == "Auto-Generated Plan"
    assert stored.sync_state == SyncState.PENDING_PUSH
    assert all(t.sync_state == SyncState.PENDING_PUSH for t in repo.list_active_targets(plan.id))


def test_store_calls_run_off_the_event_loop_thread():
    p = _Places()
    repo = _ThreadRecordingRepository()
    repo, plan, _, _, generator = _setup({"shop": [p.at(100)]}, repo=repo, places=p)
    repo.threads.clear()

    async def _run():
        loop_thread = threading.get_ident()
        outcome = await generator.generate(plan.id, ORIGIN)
        return loop_thread, outcome

    loop_thread, outcome = asyncio.run(_run())

    assert outcome.status == GenerationStatus.GENERATED
    assert set(repo.threads) == {"get_plan", "replace_targets"}
    assert loop_thread not in repo.threads.values()


def test_empty_outcome_clears_active_targets_but_keeps_plan_name_empty():
    repo, plan, _, _, generator = _setup({})
    repo.save_targets([ExposureTarget(plan_id=plan.id, name="old", order_index=0)])

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.INCONCLUSIVE
    assert repo.list_active_targets(plan.id) == []
    assert repo.get_plan(plan.id).name == ""


def test_persistence_failure_leaves_previous_targets():
    p = _Places()
    repo = _FailingRepository()
    repo, plan, _, _, generator = _setup({"shop": [p.at(100)]}, repo=repo, places=p)
    repo.save_targets([ExposureTarget(plan_id=plan.id, name="keep", order_index=0)])

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.PERSISTENCE_ERROR
    assert "disk I/O" in outcome.error
    assert [t.name for t in repo.list_active_targets(plan.id)] == ["keep"]


def test_unknown_plan_raises():
    _, _, _, _, generator = _setup({})
    with pytest.raises(PlanNotFound):
        asyncio.run(generator.generate("missing", ORIGIN))


def test_second_request_for_same_plan_is_busy():
    _, plan, tool, _, generator = _setup({})
    assert generator.guard.try_acquire(plan.id)

    outcome = asyncio.run(generator.generate(plan.id, ORIGIN))

    assert outcome.status == GenerationStatus.BUSY
    assert tool.queries == []
    generator.guard.release(plan.id)


def test_concurrent_generate_runs_once():
    p = _Places()
    _, plan, _, _, generator = _setup({"shop": [p.at(100)]}, places=p, delay=0.02)

    async def _both():
        return await asyncio.gather(generator.generate(plan.id, ORIGIN), generator.generate(plan.id, ORIGIN))

    first, second = asyncio.run(_both())

    assert {first.status, second.status} == {GenerationStatus.GENERATED, GenerationStatus.BUSY}
    assert not generator.guard.is_inflight(plan.id)


def test_guard_is_per_plan():
    guard = SingleFlightGuard()
    assert guard.try_acquire("a")
    assert guard.try_acquire("b")
    assert not guard.try_acquire("a")
    guard.release("a")
    assert guard.try_acquire("a")


def test_stage_targets_assigns_contiguous_order():
    from exposure.domain.models import CandidatePlace

    places = [
        CandidatePlace(name=f"c{i}", coordinate=Coordinate(lat=1.0, lon=float(i)), distance_m=100.0 * i)
        for i in range(5)
    ]
    staged = stage_targets("plan-1", places, base_wait_seconds=60, wait_step_seconds=30)
    assert [t.order_index for t in staged] == list(range(5))
    assert [t.wait_time_seconds for t in staged] == [60, 90, 120, 150, 180]
    assert {t.plan_id for t in staged} == {"plan-1"}
