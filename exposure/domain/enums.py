"""Domain enums."""

from enum import Enum


class LifecycleState(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class SyncState(str, Enum):
    CLEAN = "clean"
    PENDING_PUSH = "pending_push"


class GenerationTier(str, Enum):
    HIERARCHICAL = "hierarchical"
    BROAD = "broad"
    STREET = "street"


class GenerationStatus(str, Enum):
    GENERATED = "generated"
    NO_CANDIDATES = "no_candidates"
    INCONCLUSIVE = "inconclusive"
    LOCATION_UNAVAILABLE = "location_unavailable"
    BUSY = "busy"
    PERSISTENCE_ERROR = "persistence_error"
