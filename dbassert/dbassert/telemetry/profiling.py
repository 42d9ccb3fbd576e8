"""Timing instrumentation for diff and snapshot-read operations.

Provides a ``@profile_operation(name)`` decorator that records the wall
time of each call (``perf_counter_ns``) into a thread-safe
:class:`ProfileCollector` singleton and logs it at DEBUG level.

Usage::

    from dbassert.telemetry.profiling import profile_operation

    @profile_operation("diff.compute_changes")
    def compute_changes(before, after):
        ...

The collector keeps the last ``max_results`` durations per operation and
exposes ``get_stats()`` for count/mean/p50/p95/max aggregation.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class ProfileResult:
    """Immutable record of a single profiled call."""

    operation: str
    duration_ms: float


def _interpolated(ordered: list[float], percent: float) -> float:
    """Percentile of an ascending list, interpolating between neighbours."""
    position = (len(ordered) - 1) * percent / 100.0
    below = int(position)
    above = min(below + 1, len(ordered) - 1)
    return ordered[below] + (ordered[above] - ordered[below]) * (position - below)


class ProfileCollector:
    """Durations of the most recent calls, grouped by operation name.

    Parameters
    ----------
    max_results:
        How many durations are kept per operation; older ones are dropped.
    """

    _instance: ProfileCollector | None = None
    _instance_lock = threading.Lock()

    def __init__(self, max_results: int = 100) -> None:
        self.enabled = True
        self._history_size = max_results
        self._durations: dict[str, deque[float]] = {}
        self._guard = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        """Return the shared collector used by :func:`profile_operation`."""
        instance = cls._instance
        if instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
                instance = cls._instance
        return instance

    @classmethod
    def reset(cls) -> None:
        """Forget the shared collector.  For tests."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, result: ProfileResult) -> None:
        with self._guard:
            history = self._durations.setdefault(result.operation, deque(maxlen=self._history_size))
            history.append(result.duration_ms)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Summarise the kept durations of *operation*.

        Returns ``None`` when nothing was recorded, otherwise
        ``{"operation", "count", "mean_ms", "p50_ms", "p95_ms", "max_ms"}``.
        """
        with self._guard:
            ordered = sorted(self._durations.get(operation, ()))
        if not ordered:
            return None
        return {
            "operation": operation,
            "count": len(ordered),
            "mean_ms": round(sum(ordered) / len(ordered), 3),
            "p50_ms": round(_interpolated(ordered, 50), 3),
            "p95_ms": round(_interpolated(ordered, 95), 3),
            "max_ms": round(ordered[-1], 3),
        }

    def operations(self) -> list[str]:
        with self._guard:
            return sorted(self._durations)

    def clear(self) -> None:
        with self._guard:
            self._durations.clear()


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator that times a synchronous function.

    Parameters
    ----------
    name:
        The operation name for grouping (e.g. ``"reader.read_table"``).
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            collector = ProfileCollector.get_instance()
            if not collector.enabled:
                return func(*args, **kwargs)
            start_ns = time.perf_counter_ns()
            try:
                return func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                collector.record(ProfileResult(operation=name, duration_ms=round(duration_ms, 3)))
                logger.debug("PROFILE %s: %.3f ms", name, duration_ms)

        return wrapper  # type: ignore[return-value]

    return decorator
