"""Deterministic plan generation and progress analysis."""
