"""Application context for dependency injection."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from exposure.adapters.tool_factory import get_location_provider, get_place_search_tool, get_reverse_geocoder
from exposure.config.settings import GenerationSettings, location_timeout_seconds
from exposure.infrastructure.logging import get_logger
from exposure.persistence.repository import get_exposure_repository
from exposure.planner.generator import PlanGenerator, SingleFlightGuard


@dataclass
class AppContext:
    repository: Any
    search_tool: Any
    geocoder: Any
    location_provider: Any
    logger: Any = None
    settings: GenerationSettings = field(default_factory=GenerationSettings)
    location_timeout_seconds: float = 2.0
    guard: SingleFlightGuard = field(default_factory=SingleFlightGuard)
    _generator: Optional[PlanGenerator] = field(default=None, init=False, repr=False)
    _generator_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get_generator(self) -> PlanGenerator:
        if self._generator is None:
            with self._generator_lock:
                if self._generator is None:
                    self._generator = PlanGenerator(
                        repository=self.repository,
                        search_tool=self.search_tool,
                        geocoder=self.geocoder,
                        settings=self.settings,
                        logger=self.logger,
                        guard=self.guard,
                    )
        return self._generator


def make_app_context() -> AppContext:
    return AppContext(
        repository=get_exposure_repository(),
        search_tool=get_place_search_tool(),
        geocoder=get_reverse_geocoder(),
        location_provider=get_location_provider(),
        logger=get_logger(),
        location_timeout_seconds=location_timeout_seconds(),
    )


__all__ = ["AppContext", "make_app_context"]
