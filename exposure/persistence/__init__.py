"""Persistence package exports."""

from exposure.persistence.memory_repository import InMemoryExposureRepository
from exposure.persistence.repository import ExposureRepository, get_exposure_repository
from exposure.persistence.sqlite_repository import SQLiteExposureRepository

__all__ = [
    "ExposureRepository",
    "InMemoryExposureRepository",
    "SQLiteExposureRepository",
    "get_exposure_repository",
]
