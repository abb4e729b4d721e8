"""Prometheus adapter for the :class:`MeterRegistry` protocol."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Summary


class PrometheusRegistry:
    """Adapter that forwards metrics to ``prometheus_client``.

    Counters map to Prometheus :class:`~prometheus_client.Counter`,
    gauges to :class:`~prometheus_client.Gauge`, and timers to
    :class:`~prometheus_client.Summary` (observed in milliseconds).

    Metrics are created lazily on first use and cached for subsequent
    calls.  Label names are derived from the tag keys of the first
    call for a given metric name.

    Args:
        registry: Collector registry to register metrics in. Defaults to
            the process-wide ``prometheus_client.REGISTRY``; tests pass a
            fresh ``CollectorRegistry`` to stay isolated.
        descriptions: Optional help text per metric name.
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        descriptions: dict[str, str] | None = None,
    ) -> None:
        self._registry = registry if registry is not None else REGISTRY
        self._descriptions = dict(descriptions or {})
        self._lock = threading.Lock()
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}
        self._summaries: dict[str, Summary] = {}

    @property
    def collector_registry(self) -> CollectorRegistry:
        """Return the underlying collector registry, used by ``/metrics``."""
        return self._registry

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        metric = self._get_or_create_counter(name, tags)
        if tags:
            metric.labels(**tags).inc(value)
        else:
            metric.inc(value)

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        metric = self._get_or_create_gauge(name, tags)
        if tags:
            metric.labels(**tags).set(value)
        else:
            metric.set(value)

    def timer(
        self,
        name: str,
        duration_ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        metric = self._get_or_create_summary(name, tags)
        if tags:
            metric.labels(**tags).observe(duration_ms)
        else:
            metric.observe(duration_ms)

    def get_counter(self, name: str, tags: dict[str, str] | None = None) -> float:
        # prometheus_client always exposes counter samples with a _total suffix
        sample = name if name.endswith("_total") else f"{name}_total"
        value = self._registry.get_sample_value(sample, tags or {})
        return value if value is not None else 0.0

    def get_metrics(self) -> dict[str, Any]:
        """Return registered metric names grouped by kind."""
        with self._lock:
            return {
                "counters": list(self._counters.keys()),
                "gauges": list(self._gauges.keys()),
                "timers": list(self._summaries.keys()),
            }

    # -- internal helpers ---------------------------------------------------

    def _help(self, name: str, kind: str) -> str:
        return self._descriptions.get(name, f"{kind} {name}")

    def _get_or_create_counter(self, name: str, tags: dict[str, str] | None) -> Counter:
        with self._lock:
            if name not in self._counters:
                label_names = sorted(tags.keys()) if tags else []
                self._counters[name] = Counter(
                    name, self._help(name, "Counter"), label_names, registry=self._registry
                )
            return self._counters[name]

    def _get_or_create_gauge(self, name: str, tags: dict[str, str] | None) -> Gauge:
        with self._lock:
            if name not in self._gauges:
                label_names = sorted(tags.keys()) if tags else []
                self._gauges[name] = Gauge(
                    name, self._help(name, "Gauge"), label_names, registry=self._registry
                )
            return self._gauges[name]

    def _get_or_create_summary(self, name: str, tags: dict[str, str] | None) -> Summary:
        with self._lock:
            if name not in self._summaries:
                label_names = sorted(tags.keys()) if tags else []
                self._summaries[name] = Summary(
                    name, self._help(name, "Timer"), label_names, registry=self._registry
                )
            return self._summaries[name]
