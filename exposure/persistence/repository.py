"""Persistence repository interface and factory."""

from __future__ import annotations

from typing import Optional, Protocol

from exposure.config.settings import resolve_db_path, resolve_persistence_backend
from exposure.domain.models import ExposurePlan, ExposureTarget, Journey, PathPoint, WriteResult


class ExposureRepository(Protocol):
    """Store contract for plans, targets, journeys and path traces.

    Reads return only ACTIVE entities unless stated otherwise. Every write
    returns a WriteResult instead of raising.
    """

    backend: str

    def save_plan(self, plan: ExposurePlan) -> WriteResult: ...

    def get_plan(self, plan_id: str) -> Optional[ExposurePlan]: ...

    def list_plans(self) -> list[ExposurePlan]: ...

    def delete_plan(self, plan_id: str) -> WriteResult: ...

    def list_pending_sync_plans(self) -> list[ExposurePlan]: ...

    def mark_plan_synced(self, plan_id: str) -> WriteResult: ...

    def get_target(self, target_id: str) -> Optional[ExposureTarget]: ...

    def list_active_targets(self, plan_id: str) -> list[ExposureTarget]: ...

    def list_all_targets(self, plan_id: str) -> list[ExposureTarget]: ...

    def save_targets(self, targets: list[ExposureTarget]) -> WriteResult: ...

    def replace_targets(self, plan: ExposurePlan, targets: list[ExposureTarget]) -> WriteResult: ...

    def save_journey(self, journey: Journey) -> WriteResult: ...

    def get_journey(self, journey_id: str) -> Optional[Journey]: ...

    def list_plan_journeys(self, plan_id: str) -> list[Journey]: ...

    def list_current_journeys(self) -> list[Journey]: ...

    def append_path_point(self, journey_id: str, point: PathPoint) -> WriteResult: ...

    def get_path_trace(self, journey_id: str) -> Optional[list[PathPoint]]: ...


def get_exposure_repository() -> ExposureRepository:
    from exposure.persistence.memory_repository import InMemoryExposureRepository
    from exposure.persistence.sqlite_repository import SQLiteExposureRepository

    if resolve_persistence_backend() == "memory":
        return InMemoryExposureRepository()
    return SQLiteExposureRepository(resolve_db_path())


__all__ = [
    "ExposureRepository",
    "get_exposure_repository",
]
