"""FastAPI app exposing plan editing, generation and progress."""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from exposure import __version__
from exposure.api.schemas import (
    DiscardResponse,
    GenerationResponse,
    HealthResponse,
    JourneyFinishRequest,
    PathPointRequest,
    PlanCreateRequest,
    PlanDetailResponse,
    PlanRenameRequest,
    TargetCreateRequest,
    TargetMoveRequest,
    TargetUpdateRequest,
)
from exposure.application.context import AppContext, make_app_context
from exposure.domain.exceptions import (
    DomainError,
    InvalidEdit,
    JourneyNotFound,
    PlanNotFound,
    StoreWriteFailed,
    TargetNotFound,
)
from exposure.domain.models import (
    Coordinate,
    ExposurePlan,
    ExposureTarget,
    Journey,
    PathPoint,
    PlanProgress,
    TargetCompletion,
)
from exposure.planner.summary import plan_summary
from exposure.security.redact import redact_sensitive
from exposure.services import journey_service, target_service
from exposure.services.plan_service import auto_generate_plan
from exposure.services.progress_service import journey_completions, load_plan_progress

_api_logger = logging.getLogger("exposure.api")

load_dotenv()

app = FastAPI(
    title="exposure-planner",
    version=__version__,
    docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
    redoc_url=None,
)

_ctx: Optional[AppContext] = None


def get_ctx() -> AppContext:
    global _ctx
    if _ctx is None:
        _ctx = make_app_context()
    return _ctx


_STATUS_BY_ERROR = {
    PlanNotFound: 404,
    TargetNotFound: 404,
    JourneyNotFound: 404,
    InvalidEdit: 422,
    StoreWriteFailed: 503,
}


@app.exception_handler(DomainError)
async def _domain_error_handler(_request: Request, exc: DomainError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    if status_code >= 500:
        _api_logger.error("store write failed: %s", redact_sensitive(str(exc)))
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@app.get("/diagnostics")
def diagnostics(ctx: AppContext = Depends(get_ctx)):
    from exposure.adapters.tool_factory import describe_active_tools
    from exposure.config.settings import resolve_provider_snapshot
    from exposure.infrastructure.cache import geocode_cache, place_cache

    return {
        "tools": describe_active_tools(),
        "config": resolve_provider_snapshot().model_dump(),
        "persistence": getattr(ctx.repository, "backend", "unknown"),
        "cache": {"places": place_cache.stats, "geocode": geocode_cache.stats},
    }


# ── plans ─────────────────────────────────────────────

@app.post("/plans", response_model=ExposurePlan, status_code=201)
def create_plan(req: PlanCreateRequest, ctx: AppContext = Depends(get_ctx)):
    return target_service.create_plan(ctx=ctx, name=req.name)


@app.get("/plans", response_model=list[ExposurePlan])
def list_plans(ctx: AppContext = Depends(get_ctx)):
    return ctx.repository.list_plans()


@app.get("/plans/{plan_id}", response_model=PlanDetailResponse)
def get_plan(plan_id: str, use_miles: bool = False, ctx: AppContext = Depends(get_ctx)):
    plan = ctx.repository.get_plan(plan_id)
    if plan is None:
        raise PlanNotFound(plan_id)
    targets = ctx.repository.list_active_targets(plan_id)
    return PlanDetailResponse(plan=plan, targets=targets, summary=plan_summary(targets, use_miles=use_miles))


@app.patch("/plans/{plan_id}", response_model=ExposurePlan)
def rename_plan(plan_id: str, req: PlanRenameRequest, ctx: AppContext = Depends(get_ctx)):
    return target_service.rename_plan(ctx=ctx, plan_id=plan_id, name=req.name)


@app.delete("/plans/{plan_id}", status_code=204)
def delete_plan(plan_id: str, ctx: AppContext = Depends(get_ctx)):
    target_service.delete_plan(ctx=ctx, plan_id=plan_id)
    return Response(status_code=204)


@app.post("/plans/{plan_id}/discard", response_model=DiscardResponse)
def discard_plan(plan_id: str, ctx: AppContext = Depends(get_ctx)):
    return DiscardResponse(discarded=target_service.discard_if_empty(ctx=ctx, plan_id=plan_id))


@app.post("/plans/{plan_id}/generate", response_model=GenerationResponse)
async def generate_plan(plan_id: str, ctx: AppContext = Depends(get_ctx)):
    outcome = await auto_generate_plan(ctx=ctx, plan_id=plan_id)
    return GenerationResponse.from_outcome(outcome)


@app.get("/plans/{plan_id}/progress", response_model=PlanProgress)
def plan_progress(plan_id: str, ctx: AppContext = Depends(get_ctx)):
    return load_plan_progress(ctx=ctx, plan_id=plan_id)


# ── targets ───────────────────────────────────────────

@app.post("/plans/{plan_id}/targets", response_model=ExposureTarget, status_code=201)
def add_target(plan_id: str, req: TargetCreateRequest, ctx: AppContext = Depends(get_ctx)):
    position = None
    if req.lat is not None and req.lon is not None:
        position = Coordinate(lat=req.lat, lon=req.lon)
    return target_service.add_target(ctx=ctx, plan_id=plan_id, position=position)


@app.post("/plans/{plan_id}/targets/move", response_model=list[ExposureTarget])
def move_target(plan_id: str, req: TargetMoveRequest, ctx: AppContext = Depends(get_ctx)):
    return target_service.move_target(ctx=ctx, plan_id=plan_id, from_index=req.from_index, to_index=req.to_index)


@app.patch("/targets/{target_id}", response_model=ExposureTarget)
def update_target(target_id: str, req: TargetUpdateRequest, ctx: AppContext = Depends(get_ctx)):
    target = ctx.repository.get_target(target_id)
    if target is None:
        raise TargetNotFound(target_id)
    if req.wait_time_seconds is not None:
        target = target_service.update_wait_time(ctx=ctx, target_id=target_id, seconds=req.wait_time_seconds)
    if req.name is not None or req.lat is not None or req.lon is not None:
        coordinate = Coordinate(
            lat=req.lat if req.lat is not None else target.lat,
            lon=req.lon if req.lon is not None else target.lon,
        )
        target = target_service.update_target_location(
            ctx=ctx, target_id=target_id, name=req.name or target.name, coordinate=coordinate
        )
    return target


@app.delete("/targets/{target_id}", response_model=list[ExposureTarget])
def delete_target(target_id: str, ctx: AppContext = Depends(get_ctx)):
    return target_service.delete_target(ctx=ctx, target_id=target_id)


# ── journeys ──────────────────────────────────────────

@app.post("/plans/{plan_id}/journeys", response_model=Journey, status_code=201)
def start_journey(plan_id: str, ctx: AppContext = Depends(get_ctx)):
    return journey_service.start_journey(ctx=ctx, plan_id=plan_id)


@app.post("/journeys/{journey_id}/points", status_code=204)
def record_point(journey_id: str, req: PathPointRequest, ctx: AppContext = Depends(get_ctx)):
    point = PathPoint(**req.model_dump(exclude_none=True))
    journey_service.record_path_point(ctx=ctx, journey_id=journey_id, point=point)
    return Response(status_code=204)


@app.post("/journeys/{journey_id}/finish", response_model=Journey)
def finish_journey(journey_id: str, req: JourneyFinishRequest, ctx: AppContext = Depends(get_ctx)):
    return journey_service.finish_journey(ctx=ctx, journey_id=journey_id, completed=req.completed)


@app.get("/journeys/{journey_id}/completions", response_model=list[TargetCompletion])
def completions(journey_id: str, ctx: AppContext = Depends(get_ctx)):
    return journey_completions(ctx=ctx, journey_id=journey_id)
