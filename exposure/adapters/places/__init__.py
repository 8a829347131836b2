"""Place search adapters."""
