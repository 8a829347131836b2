"""Service layer public exports."""

from exposure.services.plan_service import acquire_location, auto_generate_plan
from exposure.services.progress_service import journey_completions, load_plan_progress

__all__ = ["acquire_location", "auto_generate_plan", "journey_completions", "load_plan_progress"]
