"""Tests for core.utils and the exception taxonomy."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

from vault_token_injector.core.exceptions import (
    CycleFailedError,
    DestinationUnavailableError,
    InjectorError,
    IssuanceError,
    RateLimitError,
    TokenExchangeError,
    WriteError,
)
from vault_token_injector.core.utils import elapsed_ms, safe_call


class TestSafeCall:
    def test_calls_function(self) -> None:
        fn = MagicMock()
        safe_call(fn, logging.getLogger("test"), "msg")
        fn.assert_called_once()

    def test_logs_warning_on_exception(self) -> None:
        mock_logger = MagicMock()
        fn = MagicMock(side_effect=ValueError("oops"))

        safe_call(fn, mock_logger, "Hook %s failed", "LoggingHooks")

        mock_logger.warning.assert_called_once_with("Hook %s failed", "LoggingHooks", exc_info=True)

    def test_does_not_log_on_success(self) -> None:
        mock_logger = MagicMock()
        safe_call(MagicMock(), mock_logger, "msg")
        mock_logger.warning.assert_not_called()


class TestElapsedMs:
    def test_converts_to_whole_milliseconds(self) -> None:
        assert elapsed_ms(lambda: 12.3456, 10.0) == 2345


class TestExceptions:
    def test_write_error_message_names_target(self) -> None:
        error = WriteError("tfcloud", "ws-1", "status code returned: 403", key="VAULT_TOKEN", status_code=403)
        assert str(error) == "Write to 'tfcloud:ws-1:VAULT_TOKEN' failed: status code returned: 403"
        assert error.status_code == 403

    def test_hierarchy(self) -> None:
        for error in (
            RateLimitError("circleci", "acme/api"),
            DestinationUnavailableError("tfcloud", "ws-1", "down"),
            TokenExchangeError("spacelift", "stack-1", "jwt is empty"),
        ):
            assert isinstance(error, WriteError)
            assert isinstance(error, InjectorError)

    def test_rate_limit_defaults(self) -> None:
        error = RateLimitError("circleci", "acme/api", reset_hint="30")
        assert error.status_code == 429
        assert "reset: 30" in str(error)

    def test_issuance_error_chains_cause(self) -> None:
        cause = RuntimeError("permission denied")
        error = IssuanceError("acme/api", cause)
        assert error.__cause__ is cause
        assert error.binding_label == "acme/api"

    def test_cycle_failed_error_count(self) -> None:
        error = CycleFailedError(3)
        assert error.error_count == 3
        assert "3 errors" in str(error)
