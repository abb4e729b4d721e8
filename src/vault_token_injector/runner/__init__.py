"""Injector runner: hooks, dispatch, scheduling and the HTTP surface."""

from vault_token_injector.runner.dispatcher import Dispatcher
from vault_token_injector.runner.hooks import (
    CompositeHooks,
    InjectorHooks,
    NoOpHooks,
)
from vault_token_injector.runner.hooks_builtin import (
    LoggingHooks,
    MetricsHooks,
)
from vault_token_injector.runner.result import (
    CycleResult,
    CycleStatus,
    DispatchOutcome,
    OutcomeStatus,
)
from vault_token_injector.runner.scheduler import RotationScheduler, SchedulerState
from vault_token_injector.runner.server import MetricsServer, create_app

__all__ = [
    "CompositeHooks",
    "CycleResult",
    "CycleStatus",
    "DispatchOutcome",
    "Dispatcher",
    "InjectorHooks",
    "LoggingHooks",
    "MetricsHooks",
    "MetricsServer",
    "NoOpHooks",
    "OutcomeStatus",
    "RotationScheduler",
    "SchedulerState",
    "create_app",
]
