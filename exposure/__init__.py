"""Exposure plan generation and progress analysis."""

__version__ = "1.0.0"
