"""Service-layer tests for the auto-generation use-case."""

from __future__ import annotations

import asyncio
import io

from exposure.adapters.geocoding import mock as mock_geocoding
from exposure.adapters.location.static import StaticLocationProvider
from exposure.adapters.places import mock as mock_places
from exposure.application.context import AppContext
from exposure.domain.enums import GenerationStatus, GenerationTier
from exposure.domain.models import Coordinate
from exposure.infrastructure.logging import StructuredLogger
from exposure.persistence.memory_repository import InMemoryExposureRepository
from exposure.planner.distance import haversine_m
from exposure.services import target_service
from exposure.services.plan_service import auto_generate_plan
from exposure.shared.exceptions import ToolError

WESTMINSTER = Coordinate(lat=51.5007, lon=-0.1246)


class _SlowLocation:
    async def current_position(self):
        await asyncio.sleep(1.0)
        return WESTMINSTER


class _BrokenLocation:
    async def current_position(self):
        raise ToolError("location", "permission denied")


class _ClosedSocketLocation:
    async def current_position(self):
        raise ConnectionResetError("location service socket closed")


def _ctx(location_provider, timeout: float = 2.0) -> AppContext:
    return AppContext(
        repository=InMemoryExposureRepository(),
        search_tool=mock_places,
        geocoder=mock_geocoding,
        location_provider=location_provider,
        logger=StructuredLogger(output=io.StringIO()),
        location_timeout_seconds=timeout,
    )


def test_generates_hierarchy_from_fixture_places():
    ctx = _ctx(StaticLocationProvider(WESTMINSTER))
    plan = target_service.create_plan(ctx=ctx)

    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan.id))

    assert outcome.status == GenerationStatus.GENERATED
    assert outcome.tier == GenerationTier.HIERARCHICAL
    assert outcome.target_count == 8
    names = [t.name for t in outcome.targets]
    assert names[0] == "Corner Shop"
    assert "Victoria Tower Gardens" in names
    assert "Doorstep Kiosk" not in names
    distances = [haversine_m(WESTMINSTER.lat, WESTMINSTER.lon, t.lat, t.lon) for t in outcome.targets]
    assert distances == sorted(distances)
    assert all(50 <= d <= 1000 for d in distances)
    assert ctx.repository.get_plan(plan.id).name == "Auto-Generated Plan"


def test_missing_position_is_location_unavailable():
    ctx = _ctx(StaticLocationProvider(None))
    plan = target_service.create_plan(ctx=ctx)

    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan.id))

    assert outcome.status == GenerationStatus.LOCATION_UNAVAILABLE
    assert outcome.target_count == 0


def test_location_timeout_is_location_unavailable():
    ctx = _ctx(_SlowLocation(), timeout=0.01)
    plan = target_service.create_plan(ctx=ctx)

    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan.id))

    assert outcome.status == GenerationStatus.LOCATION_UNAVAILABLE
    assert "0.0s" in outcome.error


def test_location_error_is_location_unavailable():
    ctx = _ctx(_BrokenLocation())
    plan = target_service.create_plan(ctx=ctx)

    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan.id))

    assert outcome.status == GenerationStatus.LOCATION_UNAVAILABLE
    assert "permission denied" in outcome.error


def test_unexpected_location_failure_is_location_unavailable():
    ctx = _ctx(_ClosedSocketLocation())
    plan = target_service.create_plan(ctx=ctx)

    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan.id))

    assert outcome.status == GenerationStatus.LOCATION_UNAVAILABLE
    assert "socket closed" in outcome.error
    assert ctx.repository.list_active_targets(plan.id) == []


def test_busy_plan_skips_location_lookup():
    ctx = _ctx(_BrokenLocation())
    plan = target_service.create_plan(ctx=ctx)
    ctx.guard.try_acquire(plan.id)

    outcome = asyncio.run(auto_generate_plan(ctx=ctx, plan_id=plan.id))

    assert outcome.status == GenerationStatus.BUSY
