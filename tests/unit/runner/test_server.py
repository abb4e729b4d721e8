"""Tests for the /metrics and /health HTTP surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from vault_token_injector.core.config.base import HealthMode, Platform
from vault_token_injector.core.metrics.exporters import PrometheusRegistry
from vault_token_injector.core.metrics.injector import METRIC_DESCRIPTIONS, InjectorMetrics
from vault_token_injector.runner.server import MetricsServer, create_app


def _client(health_mode: HealthMode = HealthMode.CUMULATIVE) -> tuple[TestClient, InjectorMetrics]:
    prometheus = PrometheusRegistry(CollectorRegistry(), descriptions=METRIC_DESCRIPTIONS)
    metrics = InjectorMetrics(prometheus, health_mode=health_mode)
    return TestClient(create_app(metrics, prometheus.collector_registry)), metrics


class TestHealth:
    def test_ok_before_any_error(self) -> None:
        client, _ = _client()
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_binding_errors_keep_health_ok(self) -> None:
        client, metrics = _client()
        metrics.record_destination_error(Platform.CIRCLECI)
        assert client.get("/health").status_code == 200

    def test_degraded_forever_after_session_error(self) -> None:
        client, metrics = _client()
        metrics.record_session_error()
        metrics.record_session_ok()

        response = client.get("/health")

        assert response.status_code == 418
        assert response.json() == {"status": "degraded"}

    def test_last_cycle_mode_recovers(self) -> None:
        client, metrics = _client(HealthMode.LAST_CYCLE)
        metrics.record_session_error()
        assert client.get("/health").status_code == 418
        metrics.record_session_ok()
        assert client.get("/health").status_code == 200


class TestMetrics:
    def test_prometheus_exposition(self) -> None:
        client, metrics = _client()
        metrics.record_update(Platform.TFCLOUD)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert 'vault_token_injector_tokens_updated_total{platform="tfcloud"} 1.0' in body
        assert 'vault_token_injector_tokens_updated_total{platform="circleci"} 0.0' in body
        assert "vault_token_injector_errors_total 0.0" in body
        assert "# HELP vault_token_injector_errors_total The number of errors encountered" in body


class TestMetricsServer:
    def test_stop_without_start_is_noop(self) -> None:
        client, metrics = _client()
        server = MetricsServer(client.app, port=0)
        server.stop()

    @pytest.mark.parametrize("port", [4329, 9100])
    def test_port(self, port: int) -> None:
        client, _ = _client()
        assert MetricsServer(client.app, port=port).port == port
