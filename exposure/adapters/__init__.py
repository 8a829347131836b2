"""Concrete place-search, geocoding and location adapters."""
