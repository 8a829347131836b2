"""Secure HTTP client: the single exit point for external API calls.

Responsibilities:
  1. Redact secrets from exception messages
  2. Uniform timeout / retry policy
  3. Keep the httpx dependency in one place
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from exposure.security.redact import redact_sensitive
from exposure.shared.exceptions import ToolError


class SecureHttpClient:
    """Wraps httpx.AsyncClient and redacts errors."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_retries: int = 1,
        tool_name: str = "http",
        headers: Optional[dict[str, str]] = None,
    ):
        self._timeout = timeout
        self._max_retries = max_retries
        self._tool_name = tool_name
        self._headers = dict(headers or {})

    async def get(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Run a GET request and return the decoded JSON body.

        Raises ToolError after the last attempt; messages never carry keys.
        """
        merged_headers = {**self._headers, **(headers or {})}
        last_error: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 2):
            try:
                async with httpx.AsyncClient(timeout=self._timeout, headers=merged_headers) as client:
                    resp = await client.get(url, params=params)
                    resp.raise_for_status()
                    return resp.json()
            except httpx.HTTPStatusError as e:
                safe_msg = redact_sensitive(str(e))
                last_error = ToolError(self._tool_name, f"HTTP {e.response.status_code}: {safe_msg}")
            except httpx.TimeoutException:
                last_error = ToolError(self._tool_name, f"request timed out ({self._timeout}s), attempt {attempt}")
            except httpx.HTTPError as e:
                last_error = ToolError(self._tool_name, f"network error: {redact_sensitive(str(e))}")
            except ValueError as e:
                last_error = ToolError(self._tool_name, f"invalid JSON body: {redact_sensitive(str(e))}")

            if attempt <= self._max_retries:
                await asyncio.sleep(0.5 * attempt)

        raise last_error  # type: ignore[misc]
