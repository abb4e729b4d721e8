"""Meter registry protocol and in-memory implementation.

Provides a pluggable abstraction for recording counters, gauges, and
timers. :class:`~vault_token_injector.core.metrics.exporters.PrometheusRegistry`
exports to a Prometheus collector registry for scraping.

The :class:`InMemoryRegistry` stores all metrics in memory and is
suitable for testing or lightweight use.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MeterRegistry(Protocol):
    """Protocol for recording injector metrics.

    All methods must be safe to call from multiple threads, since every
    dispatch task records its own outcome.
    """

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric.

        Args:
            name: Metric name (e.g. ``"vault_token_injector_errors_total"``).
            value: Amount to increment by. Must be non-negative.
            tags: Optional key-value tags for dimensionality.
        """
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...

    def timer(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a timing measurement in milliseconds."""
        ...

    def get_counter(self, name: str, tags: dict[str, str] | None = None) -> float:
        """Return the current value of a counter, ``0.0`` if never incremented."""
        ...

    def get_metrics(self) -> dict[str, Any]:
        """Return a snapshot of all recorded metrics.

        Returns:
            A dictionary keyed by metric kind. The value structure
            is implementation-defined.
        """
        ...


def _tag_key(tags: dict[str, str] | None) -> str:
    """Create a hashable key from tags for metric bucketing."""
    if not tags:
        return ""
    return ",".join(f"{k}={v}" for k, v in sorted(tags.items()))


@dataclass
class _TimerEntry:
    """Aggregated timer observations for one tag set."""

    tags: dict[str, str] = field(default_factory=dict)
    total_ms: float = 0.0
    count: int = 0


class InMemoryRegistry:
    """Thread-safe in-memory metrics registry.

    Stores counters, gauges, and timer totals/counts in memory.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, dict[str, float]] = {}
        self._gauges: dict[str, dict[str, float]] = {}
        self._timers: dict[str, dict[str, _TimerEntry]] = {}

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        if value < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts")
        key = _tag_key(tags)
        with self._lock:
            bucket = self._counters.setdefault(name, {})
            bucket[key] = bucket.get(key, 0.0) + value

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        key = _tag_key(tags)
        with self._lock:
            self._gauges.setdefault(name, {})[key] = value

    def timer(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        key = _tag_key(tags)
        with self._lock:
            bucket = self._timers.setdefault(name, {})
            entry = bucket.setdefault(key, _TimerEntry(tags=dict(tags or {})))
            entry.total_ms += duration_ms
            entry.count += 1

    def get_counter(self, name: str, tags: dict[str, str] | None = None) -> float:
        key = _tag_key(tags)
        with self._lock:
            return self._counters.get(name, {}).get(key, 0.0)

    def get_gauge(self, name: str, tags: dict[str, str] | None = None) -> float | None:
        """Get current gauge value, or ``None`` if never set."""
        key = _tag_key(tags)
        with self._lock:
            return self._gauges.get(name, {}).get(key)

    def get_timer_count(self, name: str, tags: dict[str, str] | None = None) -> int:
        """Get number of timer recordings, or ``0`` if none."""
        key = _tag_key(tags)
        with self._lock:
            entry = self._timers.get(name, {}).get(key)
            return entry.count if entry else 0

    def get_metrics(self) -> dict[str, Any]:
        """Return a snapshot of all recorded metrics.

        Returns:
            Dictionary with keys ``"counters"``, ``"gauges"``, ``"timers"``.
            Each contains a dict keyed by metric name with values
            representing the aggregated data.
        """
        with self._lock:
            return {
                "counters": {name: dict(buckets) for name, buckets in self._counters.items()},
                "gauges": {name: dict(buckets) for name, buckets in self._gauges.items()},
                "timers": {
                    name: {
                        key: {"total_ms": entry.total_ms, "count": entry.count, "tags": dict(entry.tags)}
                        for key, entry in buckets.items()
                    }
                    for name, buckets in self._timers.items()
                },
            }
