"""Runtime configuration helpers."""

from exposure.config.settings import GenerationSettings, ProviderSnapshot, TierSettings, resolve_provider_snapshot

__all__ = [
    "GenerationSettings",
    "ProviderSnapshot",
    "TierSettings",
    "resolve_provider_snapshot",
]
