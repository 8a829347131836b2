"""Location provider returning a configured fixed position."""

from __future__ import annotations

from typing import Optional

from exposure.config.settings import static_position
from exposure.domain.models import Coordinate


class StaticLocationProvider:
    def __init__(self, position: Optional[Coordinate] = None):
        self._position = position

    async def current_position(self) -> Optional[Coordinate]:
        return self._position

    @classmethod
    def from_settings(cls) -> "StaticLocationProvider":
        return cls(static_position())
