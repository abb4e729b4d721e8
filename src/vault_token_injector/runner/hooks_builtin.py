"""Built-in rotation hooks: logging and metrics collection."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from vault_token_injector.core.config.binding import Binding
from vault_token_injector.core.metrics.injector import BINDINGS_CONFIGURED, CYCLE_DURATION
from vault_token_injector.core.metrics.registry import MeterRegistry
from vault_token_injector.runner.result import CycleResult, DispatchOutcome, OutcomeStatus


class LoggingHooks:
    """Hooks that log rotation lifecycle events.

    Uses ``%s`` formatting for lazy evaluation.  Never logs credential
    values; outcomes do not carry them.

    Args:
        logger: Custom logger instance. Defaults to ``logging.getLogger("vti.cycle")``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("vti.cycle")

    @property
    def logger(self) -> logging.Logger:
        """Return the logger used by this hooks instance."""
        return self._logger

    def before_cycle(self, bindings: Sequence[Binding]) -> None:
        self._logger.info("Cycle starting with %d bindings", len(bindings))

    def after_cycle(self, result: CycleResult) -> None:
        self._logger.info(
            "Cycle %s in %dms: %d updated, %d failed",
            result.status.value,
            result.duration_ms,
            len(result.succeeded),
            len(result.failed),
        )

    def on_session_error(self, error: Exception) -> None:
        self._logger.error("Cycle aborted, no tokens dispatched: %s", error)

    def after_binding(self, outcome: DispatchOutcome) -> None:
        binding = outcome.binding
        if outcome.status is OutcomeStatus.SUCCESS:
            self._logger.info(
                "Updated %s %s in %dms",
                binding.platform.value,
                binding.label,
                outcome.duration_ms,
            )
        elif outcome.status in (OutcomeStatus.CANCELLED, OutcomeStatus.ABANDONED):
            self._logger.warning(
                "Dispatch to %s %s %s during shutdown",
                binding.platform.value,
                binding.label,
                outcome.status.value,
            )


class MetricsHooks:
    """Hooks that record cycle timing and binding gauges.

    Error and update counters are recorded by the dispatcher itself; these
    hooks only add observability on top.

    Args:
        registry: Meter registry to record into.
    """

    def __init__(self, registry: MeterRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> MeterRegistry:
        return self._registry

    def before_cycle(self, bindings: Sequence[Binding]) -> None:
        per_platform = Counter(b.platform.value for b in bindings)
        for platform, count in per_platform.items():
            self._registry.gauge(BINDINGS_CONFIGURED, float(count), tags={"platform": platform})

    def after_cycle(self, result: CycleResult) -> None:
        self._registry.timer(CYCLE_DURATION, float(result.duration_ms))

    def on_session_error(self, error: Exception) -> None:
        pass

    def after_binding(self, outcome: DispatchOutcome) -> None:
        pass
