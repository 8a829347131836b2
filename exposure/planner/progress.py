"""Retrospective progress analysis of journeys against a plan's targets."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from exposure.domain.constants import REACHED_RADIUS_M
from exposure.domain.enums import LifecycleState
from exposure.domain.models import ExposureTarget, Journey, PathPoint, PlanProgress, TargetCompletion
from exposure.planner.distance import DistanceFn, haversine_m

SAMPLE_INTERVAL_SECONDS = 5.0
DWELL_WINDOW_POINTS = 10


def _active_in_order(targets: Sequence[ExposureTarget]) -> list[ExposureTarget]:
    active = [t for t in targets if t.lifecycle == LifecycleState.ACTIVE]
    return sorted(active, key=lambda t: t.order_index)


def is_target_reached(
    target: ExposureTarget,
    trace: Sequence[PathPoint],
    *,
    radius_m: float = REACHED_RADIUS_M,
    distance_fn: DistanceFn = haversine_m,
) -> bool:
    return any(distance_fn(target.lat, target.lon, p.lat, p.lon) <= radius_m for p in trace)


def count_targets_reached(
    targets: Sequence[ExposureTarget],
    trace: Optional[Sequence[PathPoint]],
    *,
    radius_m: float = REACHED_RADIUS_M,
    distance_fn: DistanceFn = haversine_m,
) -> int:
    if not trace:
        return 0
    return sum(
        1
        for target in _active_in_order(targets)
        if is_target_reached(target, trace, radius_m=radius_m, distance_fn=distance_fn)
    )


def analyze_plan_progress(
    plan_id: str,
    targets: Sequence[ExposureTarget],
    journeys: Sequence[Journey],
    traces: Mapping[str, Optional[Sequence[PathPoint]]],
    *,
    radius_m: float = REACHED_RADIUS_M,
    distance_fn: DistanceFn = haversine_m,
) -> PlanProgress:
    """Aggregate attempt statistics for one plan.

    Only journeys linked to `plan_id` that are not deleted count as attempts.
    A journey without a trace is an attempt that reached nothing.
    """
    attempts = sorted(
        (j for j in journeys if j.plan_id == plan_id and j.lifecycle == LifecycleState.ACTIVE),
        key=lambda j: j.started_at,
        reverse=True,
    )
    if not attempts:
        return PlanProgress()

    reached_counts = [
        count_targets_reached(targets, traces.get(j.id), radius_m=radius_m, distance_fn=distance_fn)
        for j in attempts
    ]
    return PlanProgress(
        total_attempts=len(attempts),
        completed_attempts=sum(1 for j in attempts if j.is_completed),
        average_targets_reached=sum(reached_counts) / len(attempts),
        best_targets_reached=max(reached_counts),
        last_attempt_date=attempts[0].started_at,
    )


def analyze_target_completions(
    targets: Sequence[ExposureTarget],
    trace: Optional[Sequence[PathPoint]],
    *,
    radius_m: float = REACHED_RADIUS_M,
    sample_interval_seconds: float = SAMPLE_INTERVAL_SECONDS,
    window_points: int = DWELL_WINDOW_POINTS,
    distance_fn: DistanceFn = haversine_m,
) -> list[TargetCompletion]:
    """Per-target detail for one journey: closest approach and estimated dwell.

    Dwell counts trace points inside the radius within `window_points` of the
    closest point, one sample per `sample_interval_seconds`, capped at the
    target's planned wait time.
    `time_reached` is when the closest point was recorded, for reached targets.
    """
    points = list(trace or [])
    completions: list[TargetCompletion] = []

    for index, target in enumerate(_active_in_order(targets)):
        distances = [distance_fn(target.lat, target.lon, p.lat, p.lon) for p in points]
        if not distances:
            completions.append(TargetCompletion(target_id=target.id, index=index))
            continue

        closest = min(range(len(distances)), key=distances.__getitem__)
        reached = distances[closest] <= radius_m
        estimated_wait = 0.0
        time_reached = None
        if reached:
            time_reached = points[closest].recorded_at
            window = distances[max(0, closest - window_points): min(len(distances), closest + window_points)]
            near = sum(1 for d in window if d <= radius_m)
            estimated_wait = min(near * sample_interval_seconds, float(target.wait_time_seconds))

        completions.append(
            TargetCompletion(
                target_id=target.id,
                index=index,
                was_reached=reached,
                closest_distance_m=distances[closest],
                closest_point_index=closest,
                time_reached=time_reached,
                estimated_wait_seconds=estimated_wait,
            )
        )
    return completions


__all__ = [
    "analyze_plan_progress",
    "analyze_target_completions",
    "count_targets_reached",
    "is_target_reached",
]
