"""Domain models, enums and constants."""
