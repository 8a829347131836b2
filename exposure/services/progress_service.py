"""Read-only progress queries over stored journeys."""

from __future__ import annotations

from exposure.application.context import AppContext
from exposure.domain.exceptions import JourneyNotFound, PlanNotFound
from exposure.domain.models import PlanProgress, TargetCompletion
from exposure.planner.progress import analyze_plan_progress, analyze_target_completions


def load_plan_progress(*, ctx: AppContext, plan_id: str) -> PlanProgress:
    repo = ctx.repository
    if repo.get_plan(plan_id) is None:
        raise PlanNotFound(plan_id)
    targets = repo.list_active_targets(plan_id)
    journeys = repo.list_plan_journeys(plan_id)
    traces = {journey.id: repo.get_path_trace(journey.id) for journey in journeys}
    return analyze_plan_progress(plan_id, targets, journeys, traces)


def journey_completions(*, ctx: AppContext, journey_id: str) -> list[TargetCompletion]:
    repo = ctx.repository
    journey = repo.get_journey(journey_id)
    if journey is None:
        raise JourneyNotFound(journey_id)
    if journey.plan_id is None:
        return []
    targets = repo.list_active_targets(journey.plan_id)
    return analyze_target_completions(targets, repo.get_path_trace(journey_id))


__all__ = ["journey_completions", "load_plan_progress"]
