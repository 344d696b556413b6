"""Observability: sync/signal counters, timers and run summary logging."""

import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """Dict-based collector for sync counters and per-type timers."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time the wrapped block, recording its duration under ``name``."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._timers.setdefault(name, []).append(time.monotonic() - start)

    def summary(self) -> dict[str, Any]:
        timer_summary = {}
        for name, durations in self._timers.items():
            timer_summary[name] = {
                "count": len(durations),
                "total": sum(durations),
                "avg": sum(durations) / len(durations),
                "max": max(durations),
            }
        return {
            "counters": dict(self._counters),
            "timers": timer_summary,
        }

    def reset(self):
        self._counters.clear()
        self._timers.clear()


# Process-wide collector; reset() between tests
metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog."""
    logger.info("run_summary", **metrics.summary())
