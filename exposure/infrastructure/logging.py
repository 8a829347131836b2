"""Structured logging: JSON lines with sensitive values redacted."""

from __future__ import annotations

import json
import sys
import time
import uuid
from typing import Any, Optional

from exposure.security.redact import redact_sensitive


class StructuredLogger:
    """Writes one JSON object per line and redacts secrets before writing."""

    def __init__(self, trace_id: Optional[str] = None, output=None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output or sys.stderr
        self._timers: dict[tuple[str, Optional[str]], float] = {}

    def _emit(self, data: dict[str, Any]) -> None:
        data["trace_id"] = self.trace_id
        data["timestamp"] = time.time()
        try:
            line = redact_sensitive(json.dumps(data, ensure_ascii=False, default=str))
            self._output.write(line + "\n")
            self._output.flush()
        except Exception as exc:
            # Last-resort fallback to avoid silent logger failures.
            try:
                fallback = {
                    "event": "logger_internal_error",
                    "trace_id": self.trace_id,
                    "timestamp": time.time(),
                    "error": str(exc),
                }
                sys.stderr.write(json.dumps(fallback, ensure_ascii=False, default=str) + "\n")
                sys.stderr.flush()
            except Exception:
                return

    def stage_start(self, stage: str, **extra: Any) -> None:
        # Overlapping runs of one stage are told apart by plan_id.
        self._timers[(stage, extra.get("plan_id"))] = time.time()
        self._emit({"event": "stage_start", "stage": stage, **extra})

    def stage_end(self, stage: str, *, candidates: int = 0, **extra: Any) -> None:
        start = self._timers.pop((stage, extra.get("plan_id")), time.time())
        duration_ms = round((time.time() - start) * 1000, 1)
        self._emit({
            "event": "stage_end",
            "stage": stage,
            "duration_ms": duration_ms,
            "candidates": candidates,
            **extra,
        })

    def tool_call(self, tool_name: str, **extra: Any) -> None:
        self._emit({"event": "tool_call", "tool": tool_name, **extra})

    def error(self, stage: str, error: str, **extra: Any) -> None:
        self._emit({"event": "error", "stage": stage, "error": redact_sensitive(error), **extra})

    def warning(self, stage: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "stage": stage, "message": redact_sensitive(message), **extra})

    def summary(self, **extra: Any) -> None:
        self._emit({"event": "summary", **extra})


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    global _logger
    if _logger is None or (trace_id and _logger.trace_id != trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger
