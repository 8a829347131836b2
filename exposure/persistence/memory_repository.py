"""In-process exposure store, used for tests and `EXPOSURE_PERSISTENCE=memory`."""

from __future__ import annotations

import threading
from typing import Optional

from exposure.domain.enums import LifecycleState, SyncState
from exposure.domain.models import ExposurePlan, ExposureTarget, Journey, PathPoint, WriteResult, utc_now


class InMemoryExposureRepository:
    backend = "memory"

    def __init__(self) -> None:
        self._plans: dict[str, ExposurePlan] = {}
        self._targets: dict[str, ExposureTarget] = {}
        self._journeys: dict[str, Journey] = {}
        self._traces: dict[str, list[PathPoint]] = {}
        self._lock = threading.Lock()

    def save_plan(self, plan: ExposurePlan) -> WriteResult:
        with self._lock:
            self._plans[plan.id] = plan.model_copy(deep=True)
        return WriteResult.success()

    def get_plan(self, plan_id: str) -> Optional[ExposurePlan]:
        with self._lock:
            plan = self._plans.get(plan_id)
            if plan is None or plan.lifecycle != LifecycleState.ACTIVE:
                return None
            return plan.model_copy(deep=True)

    def list_plans(self) -> list[ExposurePlan]:
        with self._lock:
            plans = [p.model_copy(deep=True) for p in self._plans.values() if p.lifecycle == LifecycleState.ACTIVE]
        return sorted(plans, key=lambda p: p.updated_at, reverse=True)

    def delete_plan(self, plan_id: str) -> WriteResult:
        now = utc_now()
        with self._lock:
            plan = self._plans.get(plan_id)
            if plan is None or plan.lifecycle != LifecycleState.ACTIVE:
                return WriteResult.success(0)
            self._plans[plan_id] = plan.model_copy(
                update={"lifecycle": LifecycleState.DELETED, "sync_state": SyncState.PENDING_PUSH, "updated_at": now}
            )
            self._soft_delete_targets(plan_id, now)
        return WriteResult.success()

    def list_pending_sync_plans(self) -> list[ExposurePlan]:
        with self._lock:
            plans = [p.model_copy(deep=True) for p in self._plans.values() if p.sync_state == SyncState.PENDING_PUSH]
        return sorted(plans, key=lambda p: p.updated_at)

    def mark_plan_synced(self, plan_id: str) -> WriteResult:
        now = utc_now()
        with self._lock:
            plan = self._plans.get(plan_id)
            if plan is None:
                return WriteResult.success(0)
            self._plans[plan_id] = plan.model_copy(update={"sync_state": SyncState.CLEAN, "last_synced_at": now})
            for target_id, target in self._targets.items():
                if target.plan_id == plan_id:
                    self._targets[target_id] = target.model_copy(update={"sync_state": SyncState.CLEAN})
        return WriteResult.success()

    def get_target(self, target_id: str) -> Optional[ExposureTarget]:
        with self._lock:
            target = self._targets.get(target_id)
            if target is None or target.lifecycle != LifecycleState.ACTIVE:
                return None
            return target.model_copy(deep=True)

    def list_active_targets(self, plan_id: str) -> list[ExposureTarget]:
        with self._lock:
            targets = [
                t.model_copy(deep=True)
                for t in self._targets.values()
                if t.plan_id == plan_id and t.lifecycle == LifecycleState.ACTIVE
            ]
        return sorted(targets, key=lambda t: t.order_index)

    def list_all_targets(self, plan_id: str) -> list[ExposureTarget]:
        with self._lock:
            return [t.model_copy(deep=True) for t in self._targets.values() if t.plan_id == plan_id]

    def save_targets(self, targets: list[ExposureTarget]) -> WriteResult:
        with self._lock:
            for target in targets:
                self._targets[target.id] = target.model_copy(deep=True)
        return WriteResult.success(len(targets))

    def replace_targets(self, plan: ExposurePlan, targets: list[ExposureTarget]) -> WriteResult:
        if any(t.plan_id != plan.id for t in targets):
            return WriteResult.failure("replace_targets: target belongs to a different plan")
        with self._lock:
            self._plans[plan.id] = plan.model_copy(deep=True)
            self._soft_delete_targets(plan.id, utc_now())
            for target in targets:
                self._targets[target.id] = target.model_copy(deep=True)
        return WriteResult.success(len(targets))

    def _soft_delete_targets(self, plan_id: str, now) -> None:
        for target_id, target in self._targets.items():
            if target.plan_id == plan_id and target.lifecycle == LifecycleState.ACTIVE:
                self._targets[target_id] = target.model_copy(
                    update={"lifecycle": LifecycleState.DELETED, "sync_state": SyncState.PENDING_PUSH, "updated_at": now}
                )

    def save_journey(self, journey: Journey) -> WriteResult:
        with self._lock:
            self._journeys[journey.id] = journey.model_copy(deep=True)
        return WriteResult.success()

    def get_journey(self, journey_id: str) -> Optional[Journey]:
        with self._lock:
            journey = self._journeys.get(journey_id)
            if journey is None or journey.lifecycle != LifecycleState.ACTIVE:
                return None
            return journey.model_copy(deep=True)

    def list_plan_journeys(self, plan_id: str) -> list[Journey]:
        with self._lock:
            journeys = [
                j.model_copy(deep=True)
                for j in self._journeys.values()
                if j.plan_id == plan_id and j.lifecycle == LifecycleState.ACTIVE
            ]
        return sorted(journeys, key=lambda j: j.started_at, reverse=True)

    def list_current_journeys(self) -> list[Journey]:
        with self._lock:
            return [
                j.model_copy(deep=True)
                for j in self._journeys.values()
                if j.is_current and j.lifecycle == LifecycleState.ACTIVE
            ]

    def append_path_point(self, journey_id: str, point: PathPoint) -> WriteResult:
        with self._lock:
            if journey_id not in self._journeys:
                return WriteResult.failure(f"append_path_point: unknown journey {journey_id}")
            self._traces.setdefault(journey_id, []).append(point.model_copy())
        return WriteResult.success()

    def get_path_trace(self, journey_id: str) -> Optional[list[PathPoint]]:
        with self._lock:
            trace = self._traces.get(journey_id)
            return [p.model_copy() for p in trace] if trace else None


__all__ = ["InMemoryExposureRepository"]
