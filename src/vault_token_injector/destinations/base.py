"""Destination adapter abstractions and shared HTTP handling."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx

from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.exceptions import (
    DestinationUnavailableError,
    RateLimitError,
    WriteError,
)
from vault_token_injector.core.resilience.retry import RetryExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")

VARIABLE_DESCRIPTION = "Auto-Injected by vault-token-injector"

_RATE_LIMIT_HEADERS = ("Retry-After", "X-RateLimit-Reset", "X-RateLimit-Remaining")


@dataclass(frozen=True)
class EnvVar:
    """An environment variable to write into a remote workspace.

    The ``value`` is masked in ``__repr__`` when ``sensitive`` is set.
    """

    key: str
    value: str
    sensitive: bool = False

    def __repr__(self) -> str:
        shown = "***" if self.sensitive else repr(self.value)
        return f"EnvVar(key={self.key!r}, value={shown}, sensitive={self.sensitive!r})"


class Destination(ABC):
    """Base class for destination platform adapters.

    Subclasses implement :meth:`set_variable` to upsert one variable into a
    remote project, workspace or stack.  :meth:`set_variables` writes a
    batch in order and stops at the first failure; adapters whose API
    supports batching override it.

    Args:
        client: HTTP client used for every request.  Its timeout is the
            unified per-call timeout.
        retry: Optional retry executor.  Adapters wrap each remote mutation
            in :meth:`_with_retry`.
    """

    def __init__(self, client: httpx.Client, retry: RetryExecutor | None = None) -> None:
        self._client = client
        self._retry = retry

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Platform family served by this adapter."""
        ...

    @abstractmethod
    def set_variable(self, identifier: str, key: str, value: str, sensitive: bool) -> None:
        """Create or overwrite one variable.

        Raises:
            WriteError: If the platform rejected or failed the write.
        """
        ...

    def set_variables(self, identifier: str, variables: Sequence[EnvVar]) -> None:
        """Write *variables* in order, stopping at the first failure."""
        for var in variables:
            logger.info(
                "setting env var %s in %s %s",
                var.key,
                self.platform.value,
                identifier,
            )
            self.set_variable(identifier, var.key, var.value, var.sensitive)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    # -- helpers for subclasses ---------------------------------------------

    def _with_retry(self, func: Callable[[], T], identifier: str) -> T:
        if self._retry is None:
            return func()

        def on_retry(attempt: int, error: Exception, delay: float) -> None:
            logger.warning(
                "%s %s write retry %d/%d in %.1fs: %s",
                self.platform.value,
                identifier,
                attempt,
                self._retry.config.max_attempts,  # type: ignore[union-attr]
                delay,
                error,
            )

        return self._retry.execute(func, on_retry=on_retry)

    def _request(
        self,
        method: str,
        url: str,
        identifier: str,
        key: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to ``DestinationUnavailableError``."""
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise DestinationUnavailableError(
                self.platform.value, identifier, f"{type(exc).__name__}: {exc}", key=key
            ) from exc

    def _check_response(
        self,
        response: httpx.Response,
        identifier: str,
        expected: Sequence[int],
        key: str | None = None,
    ) -> None:
        """Raise the matching ``WriteError`` unless the status is expected."""
        status = response.status_code
        if status in expected:
            return

        if status == 429:
            hints = {h: response.headers[h] for h in _RATE_LIMIT_HEADERS if h in response.headers}
            logger.warning(
                "%s rate limit hit for %s: %s",
                self.platform.value,
                identifier,
                hints or "no rate limit headers",
            )
            reset = hints.get("Retry-After") or hints.get("X-RateLimit-Reset")
            raise RateLimitError(self.platform.value, identifier, key=key, reset_hint=reset)

        message = f"status code returned: {status}"
        if status >= 500:
            raise DestinationUnavailableError(
                self.platform.value, identifier, message, key=key, status_code=status
            )
        raise WriteError(self.platform.value, identifier, message, key=key, status_code=status)
