"""Bounded retry with exponential backoff and jitter for platform writes."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from vault_token_injector.core.config.retry import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Executes callables with configurable retry logic.

    Uses exponential backoff with jitter based on a ``RetryConfig``.

    Args:
        config: Retry configuration specifying attempts, delays, jitter and
            retryable exceptions.
        sleep_func: Injectable sleep function for testing. Defaults to ``time.sleep``.
        rng: Injectable random source for jitter. Defaults to ``random.random``.
    """

    def __init__(
        self,
        config: RetryConfig,
        sleep_func: Callable[[float], None] | None = None,
        rng: Callable[[], float] | None = None,
    ) -> None:
        self._config = config
        self._sleep = sleep_func or time.sleep
        self._rng = rng or random.random

    @property
    def config(self) -> RetryConfig:
        """Return the retry configuration."""
        return self._config

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay in seconds for a given attempt number.

        Uses exponential backoff: ``min(initial * multiplier^attempt, max) * (1 + jitter)``.

        Args:
            attempt: Zero-based attempt index (0 = first retry).

        Returns:
            Delay in seconds.
        """
        base = self._config.initial_delay_seconds * (
            self._config.backoff_multiplier ** attempt
        )
        base = min(base, self._config.max_delay_seconds)

        if self._config.jitter_factor > 0:
            base += base * self._config.jitter_factor * self._rng()

        return base

    def is_retryable(self, error: Exception) -> bool:
        """Check whether an exception should be retried.

        A configured name matches the exception class or any of its base
        classes by ``__name__``, so ``"WriteError"`` retries every write
        failure.

        Args:
            error: The exception to check.

        Returns:
            True if the exception is retryable.
        """
        names = {cls.__name__ for cls in type(error).__mro__}
        return any(name in names for name in self._config.retry_on_exceptions)

    def execute(
        self,
        func: Callable[[], T],
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ) -> T:
        """Execute a callable with retry logic.

        Args:
            func: Zero-argument callable to execute.
            on_retry: Optional callback invoked before each retry with
                ``(attempt, exception, delay)`` where attempt is 1-based.

        Returns:
            The return value of *func*.

        Raises:
            Exception: The last exception if all attempts are exhausted,
                or immediately if the exception is not retryable.
        """
        attempt = 0
        while True:
            try:
                return func()
            except Exception as exc:
                is_last = attempt == self._config.max_attempts - 1
                if is_last or not self.is_retryable(exc):
                    raise

                delay = self.calculate_delay(attempt)
                logger.debug(
                    "Attempt %d/%d failed (%s), retrying in %.3fs",
                    attempt + 1,
                    self._config.max_attempts,
                    type(exc).__name__,
                    delay,
                )

                if on_retry is not None:
                    on_retry(attempt + 1, exc, delay)

                self._sleep(delay)
                attempt += 1
