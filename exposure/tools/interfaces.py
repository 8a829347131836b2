"""Tool abstraction protocols and I/O schemas."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from exposure.domain.models import Coordinate
from exposure.shared.exceptions import ToolError


class PlaceSearchInput(BaseModel):
    query: str = Field(min_length=1)
    center: Coordinate
    radius_m: float = Field(gt=0)


class PlaceResult(BaseModel):
    name: Optional[str] = None
    placemark_name: Optional[str] = None
    street: Optional[str] = None
    coordinate: Coordinate


@runtime_checkable
class PlaceSearchTool(Protocol):
    async def search_places(self, params: PlaceSearchInput) -> list[PlaceResult]: ...


@runtime_checkable
class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, coordinate: Coordinate) -> Optional[str]: ...


@runtime_checkable
class LocationProvider(Protocol):
    async def current_position(self) -> Optional[Coordinate]: ...


__all__ = [
    "PlaceSearchInput",
    "PlaceResult",
    "PlaceSearchTool",
    "ReverseGeocoder",
    "LocationProvider",
    "ToolError",
]
