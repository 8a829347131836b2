"""Domain constants shared by deterministic logic."""

from exposure.domain.enums import GenerationTier

DEFAULT_SEARCH_CATEGORIES = (
    "shop",
    "convenience store",
    "cafe",
    "restaurant",
    "pharmacy",
    "post office",
    "park",
    "library",
)

BROAD_QUERY = "nearby"
FALLBACK_PLACE_NAME = "Location"
DEFAULT_PLAN_NAME = "Auto-Generated Plan"
NEW_TARGET_NAME = "New Target"
NEW_TARGET_WAIT_SECONDS = 120

REACHED_RADIUS_M = 30.0

# (min_m, max_m) inclusive
TIER_DISTANCE_BAND = {
    GenerationTier.HIERARCHICAL: (50.0, 1000.0),
    GenerationTier.BROAD: (50.0, 2000.0),
    GenerationTier.STREET: (50.0, 2000.0),
}

TIER_SEARCH_RADIUS_M = {
    GenerationTier.HIERARCHICAL: 5000.0,
    GenerationTier.BROAD: 2000.0,
    GenerationTier.STREET: 1000.0,
}

# (base_seconds, step_seconds)
TIER_WAIT_SCHEDULE = {
    GenerationTier.HIERARCHICAL: (30, 15),
    GenerationTier.BROAD: (60, 30),
    GenerationTier.STREET: (60, 30),
}

HIERARCHICAL_MAX_TARGETS = 8
FALLBACK_MAX_RAW_RESULTS = 5
