"""Concurrent fan-out of freshly minted tokens to every binding."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.config.binding import Binding
from vault_token_injector.core.config.injector import VAULT_ADDRESS_VARIABLE, InjectorConfig
from vault_token_injector.core.exceptions import IssuanceError, WriteError
from vault_token_injector.core.metrics.injector import InjectorMetrics
from vault_token_injector.core.utils import elapsed_ms, safe_call
from vault_token_injector.core.vault.base import CredentialSource, Session
from vault_token_injector.destinations.base import Destination, EnvVar
from vault_token_injector.runner.hooks import InjectorHooks, NoOpHooks
from vault_token_injector.runner.result import CycleResult, DispatchOutcome, OutcomeStatus

logger = logging.getLogger(__name__)


class Dispatcher:
    """Mints one token per binding and writes it to the binding's platform.

    Every binding runs as its own task in a per-cycle thread pool capped at
    ``max_concurrency``.  A task never raises: issuance and write failures
    are counted, logged and turned into a :class:`DispatchOutcome`, so one
    binding can never prevent or corrupt another.  :meth:`dispatch` only
    returns once every task has finished.

    When the *cancel* event passed to :meth:`dispatch` is set, tasks that
    have not started are cancelled and in-flight ones get
    ``drain_timeout_seconds`` to finish before being reported as abandoned.

    Args:
        source: Credential source used to mint tokens.
        destinations: Adapter per platform.
        metrics: Process-wide injector counters.
        vault_address: Published under ``VAULT_ADDR`` next to every token.
        token_variable: Variable name the token is written under.
        token_ttl_seconds: TTL of every minted token.
        orphan_tokens: Mint tokens without a parent.
        max_concurrency: Upper bound on parallel tasks.
        drain_timeout_seconds: Grace period for in-flight tasks on cancel.
        hooks: Lifecycle hooks (default: ``NoOpHooks``).
        clock: Injectable monotonic clock for testing.
        poll_interval_seconds: How often the barrier checks for cancellation.
    """

    def __init__(
        self,
        source: CredentialSource,
        destinations: Mapping[Platform, Destination],
        metrics: InjectorMetrics,
        *,
        vault_address: str,
        token_variable: str = "VAULT_TOKEN",
        token_ttl_seconds: int = 3600,
        orphan_tokens: bool = False,
        max_concurrency: int = 10,
        drain_timeout_seconds: float = 30.0,
        hooks: InjectorHooks | None = None,
        clock: Callable[[], float] | None = None,
        poll_interval_seconds: float = 0.25,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._source = source
        self._destinations = dict(destinations)
        self._metrics = metrics
        self._vault_address = vault_address
        self._token_variable = token_variable
        self._ttl = token_ttl_seconds
        self._orphan = orphan_tokens
        self._max_concurrency = max_concurrency
        self._drain_timeout = drain_timeout_seconds
        self._hooks: InjectorHooks = hooks or NoOpHooks()
        self._clock = clock or time.monotonic
        self._poll_interval = poll_interval_seconds

    @classmethod
    def from_config(
        cls,
        config: InjectorConfig,
        source: CredentialSource,
        destinations: Mapping[Platform, Destination],
        metrics: InjectorMetrics,
        **kwargs: Any,
    ) -> Dispatcher:
        """Create a dispatcher from the injector configuration.

        Args:
            config: Loaded injector configuration.
            source: Credential source.
            destinations: Adapter per platform.
            metrics: Injector counters.
            **kwargs: Forwarded to the constructor (hooks, clock).
        """
        return cls(
            source,
            destinations,
            metrics,
            vault_address=config.vault_address,
            token_variable=config.token_variable,
            token_ttl_seconds=config.token_ttl_seconds,
            orphan_tokens=config.orphan_tokens,
            max_concurrency=config.max_concurrency,
            drain_timeout_seconds=config.drain_timeout_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(
        self,
        session: Session,
        bindings: Sequence[Binding],
        cancel: threading.Event | None = None,
    ) -> CycleResult:
        """Dispatch to every binding concurrently and wait for all of them.

        Args:
            session: Validated session, shared read-only by every task.
            bindings: Bindings to dispatch to.
            cancel: Optional event that requests a graceful stop.

        Returns:
            ``CycleResult`` with one outcome per binding, in binding order.
        """
        start = self._clock()
        if not bindings:
            return CycleResult.from_outcomes([], elapsed_ms(self._clock, start))

        executor = ThreadPoolExecutor(
            max_workers=min(self._max_concurrency, len(bindings)),
            thread_name_prefix="vti-dispatch",
        )
        futures: list[Future[DispatchOutcome]] = [
            executor.submit(self._dispatch_binding, session, binding, cancel)
            for binding in bindings
        ]

        pending = set(futures)
        while pending:
            _, pending = wait(pending, timeout=self._poll_interval)
            if pending and cancel is not None and cancel.is_set():
                logger.warning(
                    "Shutdown requested, waiting up to %.1fs for %d in-flight bindings",
                    self._drain_timeout,
                    len(pending),
                )
                for future in pending:
                    future.cancel()
                _, pending = wait(pending, timeout=self._drain_timeout)
                break
        executor.shutdown(wait=False, cancel_futures=True)

        outcomes = [
            self._collect(future, binding)
            for future, binding in zip(futures, bindings)
        ]
        return CycleResult.from_outcomes(outcomes, elapsed_ms(self._clock, start))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _collect(self, future: Future[DispatchOutcome], binding: Binding) -> DispatchOutcome:
        if future.cancelled():
            outcome = DispatchOutcome(binding=binding, status=OutcomeStatus.CANCELLED)
        elif not future.done():
            logger.error(
                "Abandoning in-flight dispatch to %s %s",
                binding.platform.value,
                binding.label,
            )
            outcome = DispatchOutcome(binding=binding, status=OutcomeStatus.ABANDONED)
        else:
            return future.result()
        self._call_hook("after_binding", outcome)
        return outcome

    def _dispatch_binding(
        self,
        session: Session,
        binding: Binding,
        cancel: threading.Event | None,
    ) -> DispatchOutcome:
        """Run one binding end to end.  Never raises."""
        start = self._clock()
        if cancel is not None and cancel.is_set():
            outcome = DispatchOutcome(binding=binding, status=OutcomeStatus.CANCELLED)
            self._call_hook("after_binding", outcome)
            return outcome

        try:
            credential = self._source.issue_credential(
                session,
                binding.vault_role,
                binding.vault_policies,
                self._ttl,
                self._orphan,
                label=binding.label,
            )
        except IssuanceError as exc:
            outcome = self._fail_issuance(binding, exc, start)
        except Exception as exc:
            outcome = self._fail_issuance(binding, IssuanceError(binding.label, exc), start)
        else:
            outcome = self._deliver(binding, credential.value, start)

        self._call_hook("after_binding", outcome)
        return outcome

    def _deliver(self, binding: Binding, token: str, start: float) -> DispatchOutcome:
        platform = binding.platform
        destination = self._destinations.get(platform)
        variables = [
            EnvVar(key=self._token_variable, value=token, sensitive=True),
            EnvVar(key=VAULT_ADDRESS_VARIABLE, value=self._vault_address, sensitive=False),
        ]
        try:
            if destination is None:
                raise WriteError(platform.value, binding.identifier, "no destination adapter configured")
            destination.set_variables(binding.identifier, variables)
        except Exception as exc:
            self._metrics.record_destination_error(platform)
            if isinstance(exc, WriteError):
                logger.error(
                    "error updating %s %s with token value: %s",
                    platform.value,
                    binding.label,
                    exc,
                )
            else:
                logger.exception(
                    "unexpected error updating %s %s",
                    platform.value,
                    binding.label,
                )
            return DispatchOutcome(
                binding=binding,
                status=OutcomeStatus.WRITE_FAILED,
                duration_ms=elapsed_ms(self._clock, start),
                error=exc,
            )

        self._metrics.record_update(platform)
        return DispatchOutcome(
            binding=binding,
            status=OutcomeStatus.SUCCESS,
            duration_ms=elapsed_ms(self._clock, start),
        )

    def _fail_issuance(self, binding: Binding, error: IssuanceError, start: float) -> DispatchOutcome:
        self._metrics.record_issuance_error(binding.platform)
        logger.error(
            "error making token for %s %s: %s",
            binding.platform.value,
            binding.label,
            error,
        )
        return DispatchOutcome(
            binding=binding,
            status=OutcomeStatus.ISSUANCE_FAILED,
            duration_ms=elapsed_ms(self._clock, start),
            error=error,
        )

    def _call_hook(self, method: str, *args: Any) -> None:
        safe_call(
            lambda: getattr(self._hooks, method)(*args),
            logger,
            "Hook %s.%s raised an exception",
            type(self._hooks).__name__,
            method,
        )
