"""HTTP surface: Prometheus exposition and a health probe."""

from __future__ import annotations

import logging
import threading

import uvicorn
from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from vault_token_injector.core.metrics.injector import InjectorMetrics

logger = logging.getLogger(__name__)

DEFAULT_METRICS_PORT = 4329
DEGRADED_STATUS_CODE = 418


def create_app(metrics: InjectorMetrics, registry: CollectorRegistry) -> FastAPI:
    """Build the FastAPI application serving ``/metrics`` and ``/health``.

    Args:
        metrics: Injector counters the health probe is derived from.
        registry: Prometheus collector registry to expose.
    """
    app = FastAPI(title="vault-token-injector", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/metrics")
    def prometheus_metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    def health() -> JSONResponse:
        if metrics.is_healthy():
            return JSONResponse({"status": "ok"})
        return JSONResponse({"status": "degraded"}, status_code=DEGRADED_STATUS_CODE)

    return app


class MetricsServer:
    """Runs a uvicorn server for *app* in a daemon thread.

    Args:
        app: ASGI application to serve.
        host: Interface to bind.
        port: Port to listen on.
    """

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = DEFAULT_METRICS_PORT) -> None:
        self._server = uvicorn.Server(
            uvicorn.Config(app, host=host, port=port, log_level="warning", access_log=False)
        )
        self._thread: threading.Thread | None = None
        self._port = port

    @property
    def port(self) -> int:
        return self._port

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._server.run, name="vti-metrics", daemon=True)
        self._thread.start()
        logger.info("Serving /metrics and /health on port %d", self._port)

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout)
        self._thread = None
