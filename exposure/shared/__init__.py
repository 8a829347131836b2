"""Shared cross-layer exceptions."""

from exposure.shared.exceptions import ToolError

__all__ = ["ToolError"]
