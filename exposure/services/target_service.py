"""Manual plan and target edits.

Every edit marks the touched entities PENDING_PUSH and bumps `updated_at`.
Survivors of a delete or move are re-indexed so ACTIVE targets keep a
contiguous 0..N-1 `order_index`.
"""

from __future__ import annotations

from typing import Optional

from exposure.application.context import AppContext
from exposure.domain.constants import NEW_TARGET_NAME, NEW_TARGET_WAIT_SECONDS
from exposure.domain.enums import LifecycleState, SyncState
from exposure.domain.exceptions import InvalidEdit, PlanNotFound, StoreWriteFailed, TargetNotFound
from exposure.domain.models import Coordinate, ExposurePlan, ExposureTarget, WriteResult, utc_now


def _check(result: WriteResult, operation: str) -> None:
    if not result.ok:
        raise StoreWriteFailed(operation, result.error)


def _require_plan(ctx: AppContext, plan_id: str) -> ExposurePlan:
    plan = ctx.repository.get_plan(plan_id)
    if plan is None:
        raise PlanNotFound(plan_id)
    return plan


def _require_target(ctx: AppContext, target_id: str) -> ExposureTarget:
    target = ctx.repository.get_target(target_id)
    if target is None:
        raise TargetNotFound(target_id)
    return target


def _touch_plan(ctx: AppContext, plan: ExposurePlan, **updates) -> ExposurePlan:
    touched = plan.model_copy(update={**updates, "updated_at": utc_now(), "sync_state": SyncState.PENDING_PUSH})
    _check(ctx.repository.save_plan(touched), "save_plan")
    return touched


def _pending(target: ExposureTarget, **updates) -> ExposureTarget:
    return target.model_copy(update={**updates, "updated_at": utc_now(), "sync_state": SyncState.PENDING_PUSH})


def _reindexed(targets: list[ExposureTarget]) -> list[ExposureTarget]:
    return [
        t if t.order_index == index else _pending(t, order_index=index)
        for index, t in enumerate(targets)
    ]


def create_plan(*, ctx: AppContext, name: str = "") -> ExposurePlan:
    plan = ExposurePlan(name=name.strip())
    _check(ctx.repository.save_plan(plan), "save_plan")
    return plan


def rename_plan(*, ctx: AppContext, plan_id: str, name: str) -> ExposurePlan:
    plan = _require_plan(ctx, plan_id)
    return _touch_plan(ctx, plan, name=name.strip())


def delete_plan(*, ctx: AppContext, plan_id: str) -> None:
    _require_plan(ctx, plan_id)
    _check(ctx.repository.delete_plan(plan_id), "delete_plan")


def discard_if_empty(*, ctx: AppContext, plan_id: str) -> bool:
    """Drop a plan the user abandoned before naming it or adding targets."""
    plan = _require_plan(ctx, plan_id)
    if plan.name.strip() or ctx.repository.list_active_targets(plan_id):
        return False
    _check(ctx.repository.delete_plan(plan_id), "delete_plan")
    return True


def add_target(*, ctx: AppContext, plan_id: str, position: Optional[Coordinate] = None) -> ExposureTarget:
    plan = _require_plan(ctx, plan_id)
    existing = ctx.repository.list_active_targets(plan_id)
    position = position or Coordinate(lat=0.0, lon=0.0)
    target = ExposureTarget(
        plan_id=plan_id,
        name=NEW_TARGET_NAME,
        lat=position.lat,
        lon=position.lon,
        wait_time_seconds=NEW_TARGET_WAIT_SECONDS,
        order_index=len(existing),
    )
    _check(ctx.repository.save_targets([target]), "save_targets")
    _touch_plan(ctx, plan)
    return target


def update_target_location(
    *, ctx: AppContext, target_id: str, name: str, coordinate: Coordinate
) -> ExposureTarget:
    target = _require_target(ctx, target_id)
    updated = _pending(target, name=name.strip() or target.name, lat=coordinate.lat, lon=coordinate.lon)
    _check(ctx.repository.save_targets([updated]), "save_targets")
    _touch_plan(ctx, _require_plan(ctx, target.plan_id))
    return updated


def update_wait_time(*, ctx: AppContext, target_id: str, seconds: int) -> ExposureTarget:
    if seconds < 0:
        raise InvalidEdit(f"wait time must be non-negative, got {seconds}")
    target = _require_target(ctx, target_id)
    updated = _pending(target, wait_time_seconds=seconds)
    _check(ctx.repository.save_targets([updated]), "save_targets")
    _touch_plan(ctx, _require_plan(ctx, target.plan_id))
    return updated


def delete_target(*, ctx: AppContext, target_id: str) -> list[ExposureTarget]:
    """Soft-delete one target and return the re-indexed survivors."""
    target = _require_target(ctx, target_id)
    plan = _require_plan(ctx, target.plan_id)
    survivors = [t for t in ctx.repository.list_active_targets(plan.id) if t.id != target_id]
    reindexed = _reindexed(survivors)
    deleted = _pending(target, lifecycle=LifecycleState.DELETED)
    _check(ctx.repository.save_targets([deleted, *reindexed]), "save_targets")
    _touch_plan(ctx, plan)
    return reindexed


def move_target(*, ctx: AppContext, plan_id: str, from_index: int, to_index: int) -> list[ExposureTarget]:
    plan = _require_plan(ctx, plan_id)
    targets = ctx.repository.list_active_targets(plan_id)
    if not (0 <= from_index < len(targets)) or not (0 <= to_index < len(targets)):
        raise InvalidEdit(f"move {from_index}->{to_index} out of range for {len(targets)} targets")
    moved = targets.pop(from_index)
    targets.insert(to_index, moved)
    reindexed = _reindexed(targets)
    _check(ctx.repository.save_targets(reindexed), "save_targets")
    _touch_plan(ctx, plan)
    return reindexed


__all__ = [
    "add_target",
    "create_plan",
    "delete_plan",
    "delete_target",
    "discard_if_empty",
    "move_target",
    "rename_plan",
    "update_target_location",
    "update_wait_time",
]
