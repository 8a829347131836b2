"""Auto-generation use-case: acquire a position, then run the tiered generator."""

from __future__ import annotations

import asyncio

from exposure.application.context import AppContext
from exposure.domain.enums import GenerationStatus
from exposure.domain.exceptions import LocationUnavailable
from exposure.domain.models import Coordinate, GenerationOutcome
from exposure.shared.exceptions import ToolError


async def acquire_location(provider, timeout_seconds: float) -> Coordinate:
    try:
        position = await asyncio.wait_for(provider.current_position(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise LocationUnavailable(f"no position fix within {timeout_seconds:.1f}s") from None
    except ToolError as exc:
        raise LocationUnavailable(str(exc)) from None
    except Exception as exc:
        raise LocationUnavailable(f"location provider failed: {exc}") from exc
    if position is None:
        raise LocationUnavailable("location provider returned no position")
    return position


async def auto_generate_plan(*, ctx: AppContext, plan_id: str) -> GenerationOutcome:
    """Generate targets around the current position for an existing plan.

    Raises PlanNotFound for unknown plans; every other failure is reported
    through the outcome status.
    """
    generator = ctx.get_generator()
    if generator.guard.is_inflight(plan_id):
        return GenerationOutcome(plan_id=plan_id, status=GenerationStatus.BUSY)

    try:
        origin = await acquire_location(ctx.location_provider, ctx.location_timeout_seconds)
    except LocationUnavailable as exc:
        if ctx.logger is not None:
            ctx.logger.warning("location", str(exc), plan_id=plan_id)
        return GenerationOutcome(
            plan_id=plan_id,
            status=GenerationStatus.LOCATION_UNAVAILABLE,
            error=str(exc),
        )

    return await generator.generate(plan_id, origin)


__all__ = ["acquire_location", "auto_generate_plan"]
