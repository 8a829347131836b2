"""Journey tracking: start, append trace points, finish."""

from __future__ import annotations

from exposure.application.context import AppContext
from exposure.domain.enums import SyncState
from exposure.domain.exceptions import InvalidEdit, JourneyNotFound, PlanNotFound, StoreWriteFailed
from exposure.domain.models import Journey, PathPoint, WriteResult, utc_now


def _check(result: WriteResult, operation: str) -> None:
    if not result.ok:
        raise StoreWriteFailed(operation, result.error)


def _require_journey(ctx: AppContext, journey_id: str) -> Journey:
    journey = ctx.repository.get_journey(journey_id)
    if journey is None:
        raise JourneyNotFound(journey_id)
    return journey


def start_journey(*, ctx: AppContext, plan_id: str) -> Journey:
    """Start a current attempt at a plan.

    At most one journey is current; any other current journey, on this plan or
    another, stops being current.
    """
    if ctx.repository.get_plan(plan_id) is None:
        raise PlanNotFound(plan_id)
    for previous in ctx.repository.list_current_journeys():
        _check(
            ctx.repository.save_journey(
                previous.model_copy(update={"is_current": False, "sync_state": SyncState.PENDING_PUSH})
            ),
            "save_journey",
        )
    journey = Journey(plan_id=plan_id, is_current=True, is_completed=False)
    _check(ctx.repository.save_journey(journey), "save_journey")
    return journey


def record_path_point(*, ctx: AppContext, journey_id: str, point: PathPoint) -> None:
    journey = _require_journey(ctx, journey_id)
    if journey.ended_at is not None:
        raise InvalidEdit(f"journey {journey_id} has ended; its trace is closed")
    _check(ctx.repository.append_path_point(journey_id, point), "append_path_point")


def finish_journey(*, ctx: AppContext, journey_id: str, completed: bool) -> Journey:
    journey = _require_journey(ctx, journey_id)
    if journey.ended_at is not None:
        raise InvalidEdit(f"journey {journey_id} has already ended")
    finished = journey.model_copy(
        update={
            "ended_at": utc_now(),
            "is_current": False,
            "is_completed": completed,
            "sync_state": SyncState.PENDING_PUSH,
        }
    )
    _check(ctx.repository.save_journey(finished), "save_journey")
    return finished


__all__ = ["finish_journey", "record_path_point", "start_journey"]
