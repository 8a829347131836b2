"""Infrastructure services and cross-cutting utilities."""

from exposure.infrastructure.cache import MemoryCache, geocode_cache, make_cache_key, place_cache
from exposure.infrastructure.logging import StructuredLogger, get_logger

__all__ = [
    "MemoryCache",
    "make_cache_key",
    "place_cache",
    "geocode_cache",
    "StructuredLogger",
    "get_logger",
]
