"""Tests for RotationScheduler."""

from __future__ import annotations

import signal
import threading
import time
from unittest.mock import MagicMock

import pytest

from tests.factories import (
    FakeCredentialSource,
    make_config,
    make_destinations,
    make_dispatcher,
    make_metrics,
)
from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.exceptions import CycleFailedError, SessionError
from vault_token_injector.core.vault.token import TokenMaterialProvider
from vault_token_injector.runner.result import CycleResult, CycleStatus
from vault_token_injector.runner.scheduler import RotationScheduler, SchedulerState


def _scheduler(
    config=None,
    source: FakeCredentialSource | None = None,
    *,
    token: str = "s.session",
    hooks=None,
    stop_event: threading.Event | None = None,
    fail: dict | None = None,
):
    config = config or make_config(circleci=["acme/api", "acme/web"], tfcloud=["ws-1"])
    source = source or FakeCredentialSource()
    destinations = make_destinations(fail)
    metrics = make_metrics()
    dispatcher = make_dispatcher(config, source, destinations, metrics)
    scheduler = RotationScheduler(
        config,
        source,
        dispatcher,
        metrics,
        TokenMaterialProvider(environ={"VAULT_TOKEN": token}),
        hooks=hooks,
        stop_event=stop_event,
    )
    return scheduler, source, destinations, metrics


class TestRunCycle:
    def test_successful_cycle(self) -> None:
        scheduler, source, destinations, metrics = _scheduler()

        result = scheduler.run_cycle()

        assert result.status is CycleStatus.SUCCESS
        assert source.refresh_calls == ["s.session"]
        assert metrics.updates_for(Platform.CIRCLECI) == 2
        assert metrics.updates_for(Platform.TFCLOUD) == 1
        assert metrics.total_errors == 0
        assert scheduler.state is SchedulerState.IDLE

    def test_session_failure_dispatches_nothing(self) -> None:
        source = FakeCredentialSource(session_error=SessionError("lookup-self failed"))
        scheduler, _, destinations, metrics = _scheduler(source=source)

        result = scheduler.run_cycle()

        assert result.status is CycleStatus.ABORTED
        assert isinstance(result.session_error, SessionError)
        assert result.outcomes == []
        assert source.issue_requests == []
        assert all(not d.writes for d in destinations.values())
        assert metrics.session_errors == 1
        assert metrics.total_errors == 1
        assert metrics.is_healthy() is False

    def test_empty_token_is_session_error(self) -> None:
        scheduler, source, _, metrics = _scheduler(token="  ")

        result = scheduler.run_cycle()

        assert result.status is CycleStatus.ABORTED
        assert source.issue_requests == []
        assert metrics.session_errors == 1

    def test_unreadable_token_file_is_session_error(self, tmp_path) -> None:
        config = make_config(tfcloud=["ws-1"])
        source = FakeCredentialSource()
        metrics = make_metrics()
        scheduler = RotationScheduler(
            config,
            source,
            make_dispatcher(config, source, make_destinations(), metrics),
            metrics,
            TokenMaterialProvider(tmp_path / "missing"),
        )

        assert scheduler.run_cycle().status is CycleStatus.ABORTED
        assert source.refresh_calls == []
        assert metrics.session_errors == 1

    def test_undecodable_token_file_aborts_cycle(self, tmp_path) -> None:
        token_file = tmp_path / "token"
        token_file.write_bytes(b"\xff\xfe\x00s.tok")
        config = make_config(tfcloud=["ws-1"])
        source = FakeCredentialSource()
        metrics = make_metrics()
        scheduler = RotationScheduler(
            config,
            source,
            make_dispatcher(config, source, make_destinations(), metrics),
            metrics,
            TokenMaterialProvider(token_file),
        )

        result = scheduler.run_cycle()

        assert result.status is CycleStatus.ABORTED
        assert isinstance(result.session_error, SessionError)
        assert source.refresh_calls == []
        assert metrics.session_errors == 1
        assert metrics.total_errors == 1

    def test_hooks_called_in_order(self) -> None:
        hooks = MagicMock()
        scheduler, *_ = _scheduler(hooks=hooks)

        scheduler.run_cycle()

        names = [c[0] for c in hooks.method_calls if c[0] != "after_binding"]
        assert names == ["before_cycle", "after_cycle"]
        assert len(hooks.before_cycle.call_args.args[0]) == 3
        assert isinstance(hooks.after_cycle.call_args.args[0], CycleResult)

    def test_session_error_hook(self) -> None:
        hooks = MagicMock()
        source = FakeCredentialSource(session_error=SessionError("expired"))
        scheduler, *_ = _scheduler(source=source, hooks=hooks)

        scheduler.run_cycle()

        hooks.on_session_error.assert_called_once()
        hooks.before_cycle.assert_not_called()
        hooks.after_cycle.assert_not_called()

    def test_overlapping_cycle_is_skipped(self) -> None:
        scheduler, source, _, _ = _scheduler()
        scheduler._cycle_lock.acquire()
        try:
            result = scheduler.run_cycle()
        finally:
            scheduler._cycle_lock.release()

        assert result.status is CycleStatus.SKIPPED
        assert source.refresh_calls == []

    def test_failing_hook_does_not_abort_cycle(self) -> None:
        hooks = MagicMock()
        hooks.before_cycle.side_effect = RuntimeError("hook broke")
        scheduler, _, _, metrics = _scheduler(hooks=hooks)

        assert scheduler.run_cycle().status is CycleStatus.SUCCESS
        assert metrics.updates_for(Platform.TFCLOUD) == 1


class TestRunOnce:
    def test_success_returns_result(self) -> None:
        scheduler, _, _, metrics = _scheduler()

        result = scheduler.run_once()

        assert result.status is CycleStatus.SUCCESS
        assert metrics.updates_for(Platform.CIRCLECI) + metrics.updates_for(Platform.TFCLOUD) == 3
        assert metrics.total_errors == 0
        assert scheduler.state is SchedulerState.STOPPED

    def test_one_issuance_failure_raises(self) -> None:
        source = FakeCredentialSource(fail_labels=["acme/web"])
        scheduler, _, _, metrics = _scheduler(source=source)

        with pytest.raises(CycleFailedError) as excinfo:
            scheduler.run_once()

        assert excinfo.value.error_count == 1
        assert metrics.total_errors == 1
        assert metrics.updates_for(Platform.CIRCLECI) + metrics.updates_for(Platform.TFCLOUD) == 2

    def test_session_failure_raises(self) -> None:
        source = FakeCredentialSource(session_error=SessionError("expired"))
        scheduler, *_ = _scheduler(source=source)

        with pytest.raises(CycleFailedError):
            scheduler.run_once()


class _SteppingEvent(threading.Event):
    """Stop event that records waits and stops after a fixed number of them."""

    def __init__(self, stop_after: int) -> None:
        super().__init__()
        self.waits: list[float | None] = []
        self._stop_after = stop_after

    def wait(self, timeout: float | None = None) -> bool:
        self.waits.append(timeout)
        if len(self.waits) >= self._stop_after:
            self.set()
        return self.is_set()


class TestRunForever:
    def test_sleeps_interval_and_retries_after_session_failure(self) -> None:
        source = FakeCredentialSource(session_error=SessionError("sealed"))
        stop = _SteppingEvent(stop_after=2)
        config = make_config(tfcloud=["ws-1"], token_refresh_interval_seconds=120)
        scheduler, _, _, metrics = _scheduler(config, source, stop_event=stop)

        scheduler.run_forever()

        assert stop.waits == [120, 120]
        assert len(source.refresh_calls) == 2
        assert metrics.session_errors == 2
        assert source.issue_requests == []
        assert scheduler.state is SchedulerState.STOPPED

    def test_recovers_after_session_failure(self) -> None:
        source = FakeCredentialSource(session_error=SessionError("sealed"))
        stop = _SteppingEvent(stop_after=2)
        original_wait = stop.wait

        def heal_then_wait(timeout=None):
            source.session_error = None
            return original_wait(timeout)

        stop.wait = heal_then_wait  # type: ignore[method-assign]
        config = make_config(tfcloud=["ws-1"])
        scheduler, _, _, metrics = _scheduler(config, source, stop_event=stop)

        scheduler.run_forever()

        assert metrics.session_errors == 1
        assert metrics.updates_for(Platform.TFCLOUD) == 1

    def test_stop_before_start_runs_nothing(self) -> None:
        stop = threading.Event()
        scheduler, source, _, _ = _scheduler(stop_event=stop)
        scheduler.stop()

        scheduler.run_forever()

        assert source.refresh_calls == []
        assert scheduler.state is SchedulerState.STOPPED

    def test_stop_from_another_thread_wakes_sleep(self) -> None:
        config = make_config(tfcloud=["ws-1"], token_refresh_interval_seconds=3600)
        scheduler, source, _, _ = _scheduler(config)
        worker = threading.Thread(target=scheduler.run_forever)
        worker.start()

        for _ in range(500):
            if scheduler.state is SchedulerState.SLEEPING:
                break
            time.sleep(0.01)
        scheduler.stop()
        worker.join(5)

        assert not worker.is_alive()
        assert len(source.refresh_calls) == 1


class TestSignals:
    def test_install_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        installed: dict[int, object] = {}
        monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.__setitem__(signum, handler))
        scheduler, *_ = _scheduler()

        scheduler.install_signal_handlers()

        assert set(installed) == {signal.SIGINT, signal.SIGTERM}
        installed[signal.SIGTERM](signal.SIGTERM, None)
        assert scheduler.stop_event.is_set()
        assert scheduler.state is SchedulerState.TERMINATING
