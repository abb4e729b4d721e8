"""Rotation lifecycle hooks protocol and infrastructure."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from vault_token_injector.core.config.binding import Binding
from vault_token_injector.runner.result import CycleResult, DispatchOutcome

logger = logging.getLogger(__name__)


class InjectorHooks(Protocol):
    """Protocol defining lifecycle callbacks for rotation cycles.

    ``after_binding`` is invoked from dispatch worker threads, so
    implementations must be thread-safe.  This protocol is NOT
    ``@runtime_checkable``.
    """

    def before_cycle(self, bindings: Sequence[Binding]) -> None:
        """Called after the session refresh succeeded, before dispatch."""
        ...

    def after_cycle(self, result: CycleResult) -> None:
        """Called once every binding of the cycle has finished."""
        ...

    def on_session_error(self, error: Exception) -> None:
        """Called when the session refresh failed and the cycle is aborted."""
        ...

    def after_binding(self, outcome: DispatchOutcome) -> None:
        """Called when one binding's dispatch finished, successfully or not."""
        ...


class NoOpHooks:
    """Hooks implementation that does nothing.

    Useful as a default or placeholder.
    """

    def before_cycle(self, bindings: Sequence[Binding]) -> None:
        pass

    def after_cycle(self, result: CycleResult) -> None:
        pass

    def on_session_error(self, error: Exception) -> None:
        pass

    def after_binding(self, outcome: DispatchOutcome) -> None:
        pass


class CompositeHooks:
    """Broadcasts lifecycle events to multiple hooks implementations.

    Exceptions raised by individual hooks are caught and logged so that
    one misbehaving hook does not break the cycle.
    """

    def __init__(self, *hooks: InjectorHooks) -> None:
        self._hooks: tuple[InjectorHooks, ...] = hooks

    def _call_all(self, method: str, *args: object) -> None:
        for hook in self._hooks:
            try:
                getattr(hook, method)(*args)
            except Exception:
                logger.warning(
                    "Hook %s.%s raised an exception",
                    type(hook).__name__,
                    method,
                    exc_info=True,
                )

    def before_cycle(self, bindings: Sequence[Binding]) -> None:
        self._call_all("before_cycle", bindings)

    def after_cycle(self, result: CycleResult) -> None:
        self._call_all("after_cycle", result)

    def on_session_error(self, error: Exception) -> None:
        self._call_all("on_session_error", error)

    def after_binding(self, outcome: DispatchOutcome) -> None:
        self._call_all("after_binding", outcome)
