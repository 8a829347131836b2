from __future__ import annotations

import io

import pytest

from exposure.adapters.geocoding import mock as mock_geocoding
from exposure.adapters.location.static import StaticLocationProvider
from exposure.adapters.places import mock as mock_places
from exposure.application.context import AppContext
from exposure.domain.exceptions import InvalidEdit, JourneyNotFound, PlanNotFound
from exposure.domain.models import Coordinate, PathPoint
from exposure.infrastructure.logging import StructuredLogger
from exposure.persistence.memory_repository import InMemoryExposureRepository
from exposure.services import journey_service, target_service
from exposure.services.progress_service import journey_completions, load_plan_progress


@pytest.fixture
def ctx() -> AppContext:
    return AppContext(
        repository=InMemoryExposureRepository(),
        search_tool=mock_places,
        geocoder=mock_geocoding,
        location_provider=StaticLocationProvider(),
        logger=StructuredLogger(output=io.StringIO()),
    )


def _plan(ctx: AppContext) -> tuple[str, list]:
    plan = target_service.create_plan(ctx=ctx, name="Walk")
    targets = [
        target_service.add_target(ctx=ctx, plan_id=plan.id, position=Coordinate(lat=51.50 + i * 0.01, lon=-0.12))
        for i in range(3)
    ]
    return plan.id, targets


def _walk(ctx: AppContext, plan_id: str, targets, *, completed: bool):
    journey = journey_service.start_journey(ctx=ctx, plan_id=plan_id)
    for target in targets:
        journey_service.record_path_point(ctx=ctx, journey_id=journey.id, point=PathPoint(lat=target.lat, lon=target.lon))
    return journey_service.finish_journey(ctx=ctx, journey_id=journey.id, completed=completed)


def test_start_journey_supersedes_current(ctx):
    plan_id, _ = _plan(ctx)
    first = journey_service.start_journey(ctx=ctx, plan_id=plan_id)
    second = journey_service.start_journey(ctx=ctx, plan_id=plan_id)

    assert second.is_current and not second.is_completed
    assert ctx.repository.get_journey(first.id).is_current is False


def test_start_journey_clears_current_on_other_plans(ctx):
    plan_a, _ = _plan(ctx)
    plan_b, _ = _plan(ctx)
    on_a = journey_service.start_journey(ctx=ctx, plan_id=plan_a)
    on_b = journey_service.start_journey(ctx=ctx, plan_id=plan_b)

    assert ctx.repository.get_journey(on_a.id).is_current is False
    assert [j.id for j in ctx.repository.list_current_journeys()] == [on_b.id]


def test_trace_closes_when_journey_ends(ctx):
    plan_id, targets = _plan(ctx)
    finished = _walk(ctx, plan_id, targets[:1], completed=True)

    assert finished.ended_at is not None
    assert finished.is_completed is True
    with pytest.raises(InvalidEdit):
        journey_service.record_path_point(ctx=ctx, journey_id=finished.id, point=PathPoint(lat=0.0, lon=0.0))
    with pytest.raises(InvalidEdit):
        journey_service.finish_journey(ctx=ctx, journey_id=finished.id, completed=False)


def test_start_journey_requires_plan(ctx):
    with pytest.raises(PlanNotFound):
        journey_service.start_journey(ctx=ctx, plan_id="nope")
    with pytest.raises(JourneyNotFound):
        journey_service.finish_journey(ctx=ctx, journey_id="nope", completed=True)


def test_plan_progress_from_stored_journeys(ctx):
    plan_id, targets = _plan(ctx)
    _walk(ctx, plan_id, targets, completed=True)
    _walk(ctx, plan_id, targets[:2], completed=False)
    journey_service.start_journey(ctx=ctx, plan_id=plan_id)

    progress = load_plan_progress(ctx=ctx, plan_id=plan_id)

    assert progress.total_attempts == 3
    assert progress.completed_attempts == 1
    assert progress.best_targets_reached == 3
    assert progress.average_targets_reached == pytest.approx(5 / 3)


def test_plan_progress_unknown_plan(ctx):
    with pytest.raises(PlanNotFound):
        load_plan_progress(ctx=ctx, plan_id="missing")


def test_journey_completions(ctx):
    plan_id, targets = _plan(ctx)
    journey = _walk(ctx, plan_id, targets[:2], completed=False)

    completions = journey_completions(ctx=ctx, journey_id=journey.id)

    assert [c.was_reached for c in completions] == [True, True, False]
    assert completions[0].estimated_wait_seconds == pytest.approx(5.0)
