"""API request/response models."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from exposure.domain.models import ExposurePlan, ExposureTarget, GenerationOutcome


class HealthResponse(BaseModel):
    status: str = "ok"


class PlanCreateRequest(BaseModel):
    name: str = Field(default="", max_length=200, description="Plan name; may be left empty")


class PlanRenameRequest(BaseModel):
    name: str = Field(max_length=200)


class PlanDetailResponse(BaseModel):
    plan: ExposurePlan
    targets: list[ExposureTarget] = Field(default_factory=list)
    summary: str = Field(default="", description="e.g. '3 Targets • 1.20 km'")


class DiscardResponse(BaseModel):
    discarded: bool


class GenerationResponse(BaseModel):
    plan_id: str
    status: str
    tier: Optional[str] = None
    target_count: int = 0
    targets: list[ExposureTarget] = Field(default_factory=list)
    error: str = ""

    @classmethod
    def from_outcome(cls, outcome: GenerationOutcome) -> "GenerationResponse":
        return cls(
            plan_id=outcome.plan_id,
            status=outcome.status.value,
            tier=outcome.tier.value if outcome.tier else None,
            target_count=outcome.target_count,
            targets=outcome.targets,
            error=outcome.error,
        )


class TargetCreateRequest(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    lon: Optional[float] = Field(default=None, ge=-180.0, le=180.0)


class TargetUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    lon: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    wait_time_seconds: Optional[int] = Field(default=None, description="Planned dwell at the target")


class TargetMoveRequest(BaseModel):
    from_index: int = Field(ge=0)
    to_index: int = Field(ge=0)


class PathPointRequest(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    recorded_at: Optional[dt.datetime] = None


class JourneyFinishRequest(BaseModel):
    completed: bool = False
