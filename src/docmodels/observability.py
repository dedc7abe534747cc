"""In-process timings for definition loads and model builds."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter

logger = logging.getLogger(__name__)


@dataclass
class TimingSummary:
    """Aggregated timings for one operation."""

    count: int = 0
    error_count: int = 0
    total_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    last_ms: float = 0.0

    def add(self, duration_ms: float, ok: bool) -> None:
        self.count += 1
        if not ok:
            self.error_count += 1
        self.total_ms += duration_ms
        self.last_ms = duration_ms
        if self.count == 1:
            self.min_ms = self.max_ms = duration_ms
        else:
            self.min_ms = min(self.min_ms, duration_ms)
            self.max_ms = max(self.max_ms, duration_ms)


_TIMINGS: dict[str, TimingSummary] = {}


def record_timing(
    *, operation: str, duration_ms: float, ok: bool = True, subject: str = ""
) -> None:
    """Record one timing sample for *operation*."""
    normalized = max(float(duration_ms), 0.0)
    _TIMINGS.setdefault(operation, TimingSummary()).add(normalized, ok)
    logger.debug(
        "timing operation=%s subject=%s duration_ms=%.3f ok=%s",
        operation,
        subject,
        normalized,
        ok,
    )


@contextmanager
def timed(operation: str, subject: str = "") -> Iterator[None]:
    """Time the wrapped block; a raised exception counts as an error."""
    start = perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        record_timing(
            operation=operation,
            duration_ms=(perf_counter() - start) * 1000,
            ok=ok,
            subject=subject,
        )


def timings_snapshot() -> dict[str, dict[str, float | int]]:
    """Return current aggregates keyed by operation."""
    return {
        operation: {
            "count": summary.count,
            "error_count": summary.error_count,
            "total_ms": round(summary.total_ms, 3),
            "avg_ms": round(summary.total_ms / summary.count, 3)
            if summary.count
            else 0.0,
            "min_ms": round(summary.min_ms, 3),
            "max_ms": round(summary.max_ms, 3),
            "last_ms": round(summary.last_ms, 3),
        }
        for operation, summary in sorted(_TIMINGS.items())
    }


def reset_timings() -> None:
    """Clear all aggregates (test helper)."""
    _TIMINGS.clear()
