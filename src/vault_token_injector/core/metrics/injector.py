"""Named injector counters and the health signal derived from them."""

from __future__ import annotations

import threading

from vault_token_injector.core.config.base import HealthMode, Platform
from vault_token_injector.core.metrics.registry import MeterRegistry

ERRORS_TOTAL = "vault_token_injector_errors_total"
SESSION_ERRORS_TOTAL = "vault_token_injector_vault_session_errors_total"
ISSUANCE_ERRORS_TOTAL = "vault_token_injector_vault_issuance_errors_total"
DESTINATION_ERRORS_TOTAL = "vault_token_injector_destination_errors_total"
TOKENS_UPDATED_TOTAL = "vault_token_injector_tokens_updated_total"
CYCLE_DURATION = "vault_token_injector_cycle_duration_ms"
BINDINGS_CONFIGURED = "vault_token_injector_bindings_configured"

METRIC_DESCRIPTIONS: dict[str, str] = {
    ERRORS_TOTAL: "The number of errors encountered",
    SESSION_ERRORS_TOTAL: "The number of failed Vault session refreshes",
    ISSUANCE_ERRORS_TOTAL: "The number of errors encountered when creating Vault tokens",
    DESTINATION_ERRORS_TOTAL: "The number of errors encountered when calling a platform API",
    TOKENS_UPDATED_TOTAL: "The number of tokens successfully written to a platform",
    CYCLE_DURATION: "Duration of a full rotation cycle in milliseconds",
    BINDINGS_CONFIGURED: "The number of configured bindings per platform",
}


class InjectorMetrics:
    """Monotonic injector counters backed by a :class:`MeterRegistry`.

    One instance is created per process and passed by reference to the
    dispatcher, the scheduler and the HTTP surface.  Counters are only
    ever incremented.  Every labelled series is initialised to zero so it
    is visible to scrapers before the first event.

    Args:
        registry: Backend the counters are recorded in.
        health_mode: Whether a session error degrades health forever
            (``cumulative``) or only until the next successful refresh
            (``last_cycle``).
    """

    def __init__(
        self,
        registry: MeterRegistry,
        health_mode: HealthMode = HealthMode.CUMULATIVE,
    ) -> None:
        self._registry = registry
        self._health_mode = health_mode
        self._lock = threading.Lock()
        self._last_session_ok = True

        registry.counter(ERRORS_TOTAL, 0.0)
        registry.counter(SESSION_ERRORS_TOTAL, 0.0)
        for platform in Platform:
            tags = _platform_tags(platform)
            registry.counter(ISSUANCE_ERRORS_TOTAL, 0.0, tags=tags)
            registry.counter(DESTINATION_ERRORS_TOTAL, 0.0, tags=tags)
            registry.counter(TOKENS_UPDATED_TOTAL, 0.0, tags=tags)

    @property
    def registry(self) -> MeterRegistry:
        """Return the backing meter registry."""
        return self._registry

    @property
    def health_mode(self) -> HealthMode:
        return self._health_mode

    # -- recording ----------------------------------------------------------

    def record_session_error(self) -> None:
        """Count a failed session refresh."""
        with self._lock:
            self._last_session_ok = False
        self._registry.counter(SESSION_ERRORS_TOTAL)
        self._registry.counter(ERRORS_TOTAL)

    def record_session_ok(self) -> None:
        """Note a successful session refresh (only affects ``last_cycle`` health)."""
        with self._lock:
            self._last_session_ok = True

    def record_issuance_error(self, platform: Platform) -> None:
        self._registry.counter(ISSUANCE_ERRORS_TOTAL, tags=_platform_tags(platform))
        self._registry.counter(ERRORS_TOTAL)

    def record_destination_error(self, platform: Platform) -> None:
        self._registry.counter(DESTINATION_ERRORS_TOTAL, tags=_platform_tags(platform))
        self._registry.counter(ERRORS_TOTAL)

    def record_update(self, platform: Platform) -> None:
        self._registry.counter(TOKENS_UPDATED_TOTAL, tags=_platform_tags(platform))

    # -- reading ------------------------------------------------------------

    @property
    def total_errors(self) -> int:
        return int(self._registry.get_counter(ERRORS_TOTAL))

    @property
    def session_errors(self) -> int:
        return int(self._registry.get_counter(SESSION_ERRORS_TOTAL))

    def issuance_errors_for(self, platform: Platform) -> int:
        return int(self._registry.get_counter(ISSUANCE_ERRORS_TOTAL, _platform_tags(platform)))

    def destination_errors_for(self, platform: Platform) -> int:
        return int(self._registry.get_counter(DESTINATION_ERRORS_TOTAL, _platform_tags(platform)))

    def errors_for(self, platform: Platform) -> int:
        """Issuance plus destination errors attributed to *platform*."""
        return self.issuance_errors_for(platform) + self.destination_errors_for(platform)

    def updates_for(self, platform: Platform) -> int:
        return int(self._registry.get_counter(TOKENS_UPDATED_TOTAL, _platform_tags(platform)))

    def is_healthy(self) -> bool:
        """Health as reported by ``/health``.

        In ``cumulative`` mode any session error since start-up degrades
        health for the rest of the process lifetime.
        """
        if self._health_mode is HealthMode.LAST_CYCLE:
            with self._lock:
                return self._last_session_ok
        return self.session_errors == 0


def _platform_tags(platform: Platform) -> dict[str, str]:
    return {"platform": platform.value}
