"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, Field

from exposure.domain.enums import GenerationStatus, GenerationTier, LifecycleState, SyncState


def _new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Coordinate(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)

    @property
    def key(self) -> str:
        return f"{self.lat},{self.lon}"


class ExposurePlan(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = ""
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)
    lifecycle: LifecycleState = LifecycleState.ACTIVE
    sync_state: SyncState = SyncState.PENDING_PUSH
    last_synced_at: Optional[dt.datetime] = None


class ExposureTarget(BaseModel):
    id: str = Field(default_factory=_new_id)
    plan_id: str
    name: str = ""
    lat: float = 0.0
    lon: float = 0.0
    wait_time_seconds: int = Field(default=0, ge=0)
    order_index: int = Field(default=0, ge=0)
    created_at: dt.datetime = Field(default_factory=utc_now)
    updated_at: dt.datetime = Field(default_factory=utc_now)
    lifecycle: LifecycleState = LifecycleState.ACTIVE
    sync_state: SyncState = SyncState.PENDING_PUSH

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)


class PathPoint(BaseModel):
    lat: float
    lon: float
    recorded_at: dt.datetime = Field(default_factory=utc_now)


class Journey(BaseModel):
    id: str = Field(default_factory=_new_id)
    plan_id: Optional[str] = None
    started_at: dt.datetime = Field(default_factory=utc_now)
    ended_at: Optional[dt.datetime] = None
    is_current: bool = True
    is_completed: bool = False
    lifecycle: LifecycleState = LifecycleState.ACTIVE
    sync_state: SyncState = SyncState.PENDING_PUSH


class CandidatePlace(BaseModel):
    name: str
    coordinate: Coordinate
    distance_m: float


class PlanProgress(BaseModel):
    total_attempts: int = 0
    completed_attempts: int = 0
    average_targets_reached: float = 0.0
    best_targets_reached: int = 0
    last_attempt_date: Optional[dt.datetime] = None


class TargetCompletion(BaseModel):
    target_id: str
    index: int
    was_reached: bool = False
    closest_distance_m: Optional[float] = None
    closest_point_index: Optional[int] = None
    time_reached: Optional[dt.datetime] = None
    estimated_wait_seconds: float = 0.0


class GenerationOutcome(BaseModel):
    plan_id: str
    status: GenerationStatus
    tier: Optional[GenerationTier] = None
    targets: list[ExposureTarget] = Field(default_factory=list)
    error: str = ""

    @property
    def target_count(self) -> int:
        return len(self.targets)


class WriteResult(BaseModel):
    ok: bool = True
    affected: int = 0
    error: str = ""

    @classmethod
    def success(cls, affected: int = 1) -> "WriteResult":
        return cls(ok=True, affected=affected)

    @classmethod
    def failure(cls, error: str) -> "WriteResult":
        return cls(ok=False, error=error)
