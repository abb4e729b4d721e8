"""Tests for core.metrics.registry."""

from __future__ import annotations

import threading

import pytest

from vault_token_injector.core.metrics.registry import (
    InMemoryRegistry,
    MeterRegistry,
)


class TestMeterRegistryProtocol:
    def test_in_memory_registry_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryRegistry(), MeterRegistry)


class TestInMemoryRegistryCounter:
    def test_increment_default(self) -> None:
        reg = InMemoryRegistry()
        reg.counter("vault_token_injector_errors_total")
        assert reg.get_counter("vault_token_injector_errors_total") == 1.0

    def test_accumulates(self) -> None:
        reg = InMemoryRegistry()
        reg.counter("updates")
        reg.counter("updates", value=3.0)
        assert reg.get_counter("updates") == 4.0

    def test_tags_separate_counters(self) -> None:
        reg = InMemoryRegistry()
        reg.counter("updates", tags={"platform": "circleci"})
        reg.counter("updates", tags={"platform": "tfcloud"})
        reg.counter("updates", tags={"platform": "circleci"})
        assert reg.get_counter("updates", tags={"platform": "circleci"}) == 2.0
        assert reg.get_counter("updates", tags={"platform": "tfcloud"}) == 1.0

    def test_missing_counter_returns_zero(self) -> None:
        assert InMemoryRegistry().get_counter("nonexistent") == 0.0

    def test_negative_increment_rejected(self) -> None:
        with pytest.raises(ValueError):
            InMemoryRegistry().counter("updates", value=-1.0)

    def test_concurrent_increments(self) -> None:
        reg = InMemoryRegistry()

        def bump() -> None:
            for _ in range(500):
                reg.counter("updates", tags={"platform": "circleci"})

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert reg.get_counter("updates", tags={"platform": "circleci"}) == 4000.0


class TestInMemoryRegistryGaugeAndTimer:
    def test_gauge_overwrites(self) -> None:
        reg = InMemoryRegistry()
        reg.gauge("bindings", 3.0, tags={"platform": "tfcloud"})
        reg.gauge("bindings", 1.0, tags={"platform": "tfcloud"})
        assert reg.get_gauge("bindings", tags={"platform": "tfcloud"}) == 1.0

    def test_missing_gauge_is_none(self) -> None:
        assert InMemoryRegistry().get_gauge("bindings") is None

    def test_timer_counts_observations(self) -> None:
        reg = InMemoryRegistry()
        reg.timer("cycle_ms", 12.0)
        reg.timer("cycle_ms", 30.0)
        assert reg.get_timer_count("cycle_ms") == 2
        assert reg.get_metrics()["timers"]["cycle_ms"][""]["total_ms"] == 42.0
