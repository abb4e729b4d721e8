"""Rotation scheduler: refresh the session, fan out, sleep, repeat."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from vault_token_injector.core.config.injector import InjectorConfig
from vault_token_injector.core.exceptions import CycleFailedError, SessionError
from vault_token_injector.core.metrics.injector import InjectorMetrics
from vault_token_injector.core.utils import elapsed_ms, safe_call
from vault_token_injector.core.vault.base import CredentialSource
from vault_token_injector.core.vault.token import TokenMaterialProvider
from vault_token_injector.runner.dispatcher import Dispatcher
from vault_token_injector.runner.hooks import InjectorHooks, NoOpHooks
from vault_token_injector.runner.result import CycleResult, CycleStatus

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle state of the rotation scheduler."""

    IDLE = "idle"
    REFRESHING = "refreshing"
    DISPATCHING = "dispatching"
    SLEEPING = "sleeping"
    TERMINATING = "terminating"
    STOPPED = "stopped"


class RotationScheduler:
    """Drives rotation cycles on a fixed interval.

    A cycle reads the session token, validates it against Vault and, only
    if that succeeds, hands the full binding set to the :class:`Dispatcher`.
    A failed refresh aborts the cycle before anything is minted; the next
    attempt happens after the regular interval.

    Args:
        config: Injector configuration.
        source: Credential source used to refresh the session.
        dispatcher: Fan-out dispatcher.
        metrics: Process-wide injector counters.
        token_provider: Supplies the session token each cycle.
        hooks: Lifecycle hooks (default: ``NoOpHooks``).
        stop_event: Event that ends :meth:`run_forever`. Created if omitted.
        clock: Injectable monotonic clock for testing.
    """

    def __init__(
        self,
        config: InjectorConfig,
        source: CredentialSource,
        dispatcher: Dispatcher,
        metrics: InjectorMetrics,
        token_provider: TokenMaterialProvider,
        hooks: InjectorHooks | None = None,
        stop_event: threading.Event | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._dispatcher = dispatcher
        self._metrics = metrics
        self._token_provider = token_provider
        self._hooks: InjectorHooks = hooks or NoOpHooks()
        self._stop_event = stop_event or threading.Event()
        self._clock = clock or time.monotonic
        self._cycle_lock = threading.Lock()
        self._state = SchedulerState.IDLE

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_cycle(self) -> CycleResult:
        """Run one refresh-and-dispatch pass.

        Returns:
            ``CycleResult``; ``aborted`` when the session refresh failed and
            ``skipped`` when another cycle is still in progress.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Previous cycle still in progress, skipping this one")
            return CycleResult(status=CycleStatus.SKIPPED)
        try:
            return self._run_cycle_locked()
        finally:
            self._cycle_lock.release()

    def run_forever(self) -> None:
        """Run cycles until :meth:`stop` is called.

        The sleep between cycles is a fixed interval on the stop event, so a
        stop request wakes it immediately.
        """
        interval = self._config.token_refresh_interval_seconds
        logger.info("Starting token rotation every %ds", interval)
        while not self._stop_event.is_set():
            self.run_cycle()
            if self._stop_event.is_set():
                break
            self._state = SchedulerState.SLEEPING
            logger.debug("Sleeping %ds until the next cycle", interval)
            self._stop_event.wait(interval)
        self._state = SchedulerState.STOPPED
        logger.info("Token rotation stopped")

    def run_once(self) -> CycleResult:
        """Run exactly one cycle.

        Raises:
            CycleFailedError: If any error was recorded during the pass.
        """
        result = self.run_cycle()
        self._state = SchedulerState.STOPPED
        errors = self._metrics.total_errors
        if errors > 0:
            raise CycleFailedError(errors)
        return result

    def stop(self) -> None:
        """Request a graceful stop of the current and all future cycles."""
        if not self._stop_event.is_set():
            logger.info("Stop requested, finishing in-flight work")
        self._state = SchedulerState.TERMINATING
        self._stop_event.set()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to :meth:`stop`.

        Must be called from the main thread.
        """
        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, self._handle_signal)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _handle_signal(self, signum: int, frame: Any) -> None:
        logger.info("Received signal %s", signal.Signals(signum).name)
        self.stop()

    def _run_cycle_locked(self) -> CycleResult:
        start = self._clock()
        self._state = SchedulerState.REFRESHING
        try:
            session = self._source.refresh_session(self._token_provider.read())
        except SessionError as exc:
            self._metrics.record_session_error()
            logger.error("error refreshing vault session: %s", exc)
            self._call_hook("on_session_error", exc)
            self._settle()
            return CycleResult(
                status=CycleStatus.ABORTED,
                duration_ms=elapsed_ms(self._clock, start),
                session_error=exc,
            )

        self._metrics.record_session_ok()
        bindings = self._config.bindings()
        self._call_hook("before_cycle", bindings)

        self._state = SchedulerState.DISPATCHING
        result = self._dispatcher.dispatch(session, bindings, cancel=self._stop_event)
        result.duration_ms = elapsed_ms(self._clock, start)

        self._call_hook("after_cycle", result)
        self._settle()
        return result

    def _settle(self) -> None:
        if self._stop_event.is_set():
            self._state = SchedulerState.TERMINATING
        else:
            self._state = SchedulerState.IDLE

    def _call_hook(self, method: str, *args: Any) -> None:
        safe_call(
            lambda: getattr(self._hooks, method)(*args),
            logger,
            "Hook %s.%s raised an exception",
            type(self._hooks).__name__,
            method,
        )
