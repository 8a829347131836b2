"""Device location adapters."""
