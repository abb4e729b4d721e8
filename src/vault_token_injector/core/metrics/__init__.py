"""Metrics collection, export, and the injector health signal."""

from vault_token_injector.core.metrics.exporters import PrometheusRegistry
from vault_token_injector.core.metrics.injector import METRIC_DESCRIPTIONS, InjectorMetrics
from vault_token_injector.core.metrics.registry import InMemoryRegistry, MeterRegistry

__all__ = [
    "METRIC_DESCRIPTIONS",
    "InMemoryRegistry",
    "InjectorMetrics",
    "MeterRegistry",
    "PrometheusRegistry",
]
