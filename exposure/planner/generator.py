"""Tiered exposure-plan generation.

Tier order:
  1. hierarchical: multi-category search, nearest first, 50-1000 m
  2. broad: a single "nearby" query, search-service order, 50-2000 m
  3. street: reverse-geocode the origin and search the street name

A tier runs only when every earlier tier produced no usable candidate. The
chosen candidates replace the plan's active targets in one store write.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Optional

from exposure.config.settings import GenerationSettings
from exposure.domain.constants import FALLBACK_PLACE_NAME
from exposure.domain.enums import GenerationStatus, GenerationTier, SyncState
from exposure.domain.exceptions import PlanNotFound
from exposure.domain.models import (
    CandidatePlace,
    Coordinate,
    ExposurePlan,
    ExposureTarget,
    GenerationOutcome,
    utc_now,
)
from exposure.infrastructure.logging import StructuredLogger, get_logger
from exposure.persistence.repository import ExposureRepository
from exposure.planner.aggregator import aggregate_candidates
from exposure.planner.distance import DistanceFn, haversine_m, within_band
from exposure.planner.locator import locate_candidates
from exposure.tools.interfaces import PlaceSearchTool, ReverseGeocoder


class SingleFlightGuard:
    """At most one in-flight run per key; extra callers are turned away."""

    def __init__(self) -> None:
        self._inflight: set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._inflight:
                return False
            self._inflight.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._inflight.discard(key)

    def is_inflight(self, key: str) -> bool:
        with self._lock:
            return key in self._inflight


def stage_targets(
    plan_id: str,
    places: list[CandidatePlace],
    *,
    base_wait_seconds: int,
    wait_step_seconds: int,
) -> list[ExposureTarget]:
    """Turn selected places into targets with progressive wait times."""
    now = utc_now()
    return [
        ExposureTarget(
            plan_id=plan_id,
            name=place.name,
            lat=place.coordinate.lat,
            lon=place.coordinate.lon,
            wait_time_seconds=base_wait_seconds + wait_step_seconds * index,
            order_index=index,
            created_at=now,
            updated_at=now,
            sync_state=SyncState.PENDING_PUSH,
        )
        for index, place in enumerate(places)
    ]


class PlanGenerator:
    def __init__(
        self,
        *,
        repository: ExposureRepository,
        search_tool: PlaceSearchTool,
        geocoder: ReverseGeocoder,
        settings: Optional[GenerationSettings] = None,
        logger: Optional[StructuredLogger] = None,
        guard: Optional[SingleFlightGuard] = None,
        distance_fn: DistanceFn = haversine_m,
    ) -> None:
        self._repository = repository
        self._search_tool = search_tool
        self._geocoder = geocoder
        self._settings = settings or GenerationSettings()
        self._logger = logger or get_logger()
        self._guard = guard or SingleFlightGuard()
        self._distance_fn = distance_fn

    @property
    def guard(self) -> SingleFlightGuard:
        return self._guard

    async def generate(self, plan_id: str, origin: Coordinate) -> GenerationOutcome:
        if not self._guard.try_acquire(plan_id):
            self._logger.warning("generate", f"generation already running for plan={plan_id}")
            return GenerationOutcome(plan_id=plan_id, status=GenerationStatus.BUSY)
        try:
            return await self._generate(plan_id, origin)
        finally:
            self._guard.release(plan_id)

    async def _generate(self, plan_id: str, origin: Coordinate) -> GenerationOutcome:
        plan = await asyncio.to_thread(self._repository.get_plan, plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)

        places = await self._run_tier(plan_id, GenerationTier.HIERARCHICAL, self._hierarchical(origin))
        if places:
            return await self._commit(plan, places, GenerationTier.HIERARCHICAL)

        places = await self._run_tier(plan_id, GenerationTier.BROAD, self._broad(origin))
        if places:
            return await self._commit(plan, places, GenerationTier.BROAD)

        street = await self._street_name(origin)
        if street is None:
            self._logger.warning("generate", "no street name for origin; street tier skipped")
            return await self._commit(plan, [], GenerationTier.STREET, status=GenerationStatus.INCONCLUSIVE)

        places = await self._run_tier(plan_id, GenerationTier.STREET, self._street(origin, street))
        if places:
            return await self._commit(plan, places, GenerationTier.STREET)
        return await self._commit(plan, [], GenerationTier.STREET, status=GenerationStatus.NO_CANDIDATES)

    async def _run_tier(self, plan_id: str, tier: GenerationTier, search) -> list[CandidatePlace]:
        self._logger.stage_start(tier.value, plan_id=plan_id)
        places = await search
        self._logger.stage_end(tier.value, candidates=len(places), plan_id=plan_id)
        return places

    async def _hierarchical(self, origin: Coordinate) -> list[CandidatePlace]:
        tier = self._settings.tier(GenerationTier.HIERARCHICAL)
        candidates = await aggregate_candidates(
            self._search_tool,
            origin=origin,
            categories=self._settings.categories,
            radius_m=tier.search_radius_m,
            min_distance_m=tier.min_distance_m,
            max_distance_m=tier.max_distance_m,
            logger=self._logger,
            distance_fn=self._distance_fn,
        )
        in_band = [c for c in candidates if within_band(c.distance_m, tier.min_distance_m, tier.max_distance_m)]
        return in_band[: self._settings.hierarchical_max_targets]

    async def _broad(self, origin: Coordinate) -> list[CandidatePlace]:
        tier = self._settings.tier(GenerationTier.BROAD)
        return await locate_candidates(
            self._search_tool,
            origin=origin,
            query=self._settings.broad_query,
            radius_m=tier.search_radius_m,
            min_distance_m=tier.min_distance_m,
            max_distance_m=tier.max_distance_m,
            max_raw_results=self._settings.fallback_max_raw_results,
            fallback_name=FALLBACK_PLACE_NAME,
            logger=self._logger,
            distance_fn=self._distance_fn,
        )

    async def _street_name(self, origin: Coordinate) -> Optional[str]:
        try:
            street = await self._geocoder.reverse_geocode(origin)
        except Exception as exc:
            self._logger.warning("geocode", f"reverse geocode failed: {exc}")
            return None
        self._logger.tool_call("geocoder.reverse", ok=True, found=bool(street))
        if not street or not street.strip():
            return None
        return street.strip()

    async def _street(self, origin: Coordinate, street: str) -> list[CandidatePlace]:
        tier = self._settings.tier(GenerationTier.STREET)
        return await locate_candidates(
            self._search_tool,
            origin=origin,
            query=street,
            radius_m=tier.search_radius_m,
            min_distance_m=tier.min_distance_m,
            max_distance_m=tier.max_distance_m,
            max_raw_results=self._settings.fallback_max_raw_results,
            fallback_name=f"{street} {FALLBACK_PLACE_NAME}",
            logger=self._logger,
            distance_fn=self._distance_fn,
        )

    async def _commit(
        self,
        plan: ExposurePlan,
        places: list[CandidatePlace],
        tier: GenerationTier,
        *,
        status: GenerationStatus = GenerationStatus.GENERATED,
    ) -> GenerationOutcome:
        tier_settings = self._settings.tier(tier)
        staged = stage_targets(
            plan.id,
            places,
            base_wait_seconds=tier_settings.base_wait_seconds,
            wait_step_seconds=tier_settings.wait_step_seconds,
        )
        updates = {"updated_at": utc_now(), "sync_state": SyncState.PENDING_PUSH}
        if staged and not plan.name.strip():
            updates["name"] = self._settings.default_plan_name
        updated_plan = plan.model_copy(update=updates)

        result = await asyncio.to_thread(self._repository.replace_targets, updated_plan, staged)
        if not result.ok:
            self._logger.error("commit", result.error, plan_id=plan.id, tier=tier.value)
            return GenerationOutcome(
                plan_id=plan.id,
                status=GenerationStatus.PERSISTENCE_ERROR,
                tier=tier,
                error=result.error,
            )

        self._logger.summary(
            stage="commit",
            plan_id=plan.id,
            tier=tier.value,
            status=status.value,
            targets=len(staged),
        )
        return GenerationOutcome(plan_id=plan.id, status=status, tier=tier, targets=staged)


__all__ = ["PlanGenerator", "SingleFlightGuard", "stage_targets"]
