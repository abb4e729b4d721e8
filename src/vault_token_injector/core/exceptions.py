"""Injector error taxonomy.

``SessionError`` aborts a whole cycle.  ``IssuanceError`` and the
``WriteError`` family are local to one binding and never stop its siblings.
``CycleFailedError`` is only raised by one-shot runs to report that the
single cycle recorded errors.
"""


class InjectorError(Exception):
    """Base exception for injector errors."""

    pass


class SessionError(InjectorError):
    """The Vault session could not be refreshed or validated."""

    pass


class IssuanceError(InjectorError):
    """Vault refused or failed to mint a token for one binding."""

    def __init__(self, binding_label: str, cause: Exception | str) -> None:
        self.binding_label = binding_label
        self.cause = cause
        super().__init__(f"Failed to issue token for '{binding_label}': {cause}")
        if isinstance(cause, Exception):
            self.__cause__ = cause


class WriteError(InjectorError):
    """A destination platform rejected or failed a variable write.

    Args:
        platform: Platform name (``"circleci"``, ``"tfcloud"``, ``"spacelift"``).
        identifier: Remote project, workspace or stack identifier.
        message: Human-readable failure description.
        key: Variable name being written, if the failure is per-variable.
        status_code: HTTP status returned by the platform, if any.
    """

    def __init__(
        self,
        platform: str,
        identifier: str,
        message: str,
        key: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.platform = platform
        self.identifier = identifier
        self.key = key
        self.status_code = status_code
        target = f"{platform}:{identifier}" if key is None else f"{platform}:{identifier}:{key}"
        super().__init__(f"Write to '{target}' failed: {message}")


class RateLimitError(WriteError):
    """The platform answered 429.  Logged with its reset hint, not retried by default."""

    def __init__(
        self,
        platform: str,
        identifier: str,
        key: str | None = None,
        reset_hint: str | None = None,
    ) -> None:
        self.reset_hint = reset_hint
        super().__init__(
            platform,
            identifier,
            f"rate limited (reset: {reset_hint or 'unknown'})",
            key=key,
            status_code=429,
        )


class DestinationUnavailableError(WriteError):
    """Transport failure or 5xx response from the platform."""

    pass


class TokenExchangeError(WriteError):
    """The platform's API key could not be exchanged for a bearer token."""

    pass


class CycleFailedError(InjectorError):
    """A one-shot run finished with errors recorded."""

    def __init__(self, error_count: int) -> None:
        self.error_count = error_count
        super().__init__(
            f"there were {error_count} errors during the run, see the logs for more details"
        )
