"""Reverse geocoding adapters."""
