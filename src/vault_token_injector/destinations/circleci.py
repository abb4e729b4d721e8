"""CircleCI project environment variables."""

from __future__ import annotations

import httpx

from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.exceptions import WriteError
from vault_token_injector.core.resilience.retry import RetryExecutor
from vault_token_injector.destinations.base import Destination

DEFAULT_ADDRESS = "https://circleci.com"


def project_slug(name: str) -> str:
    """Return the v2 project slug, defaulting the VCS to GitHub.

    ``org/repo`` becomes ``gh/org/repo`` and a bare name is prefixed the
    same way; a name that already carries a VCS segment (``gh/org/repo``,
    ``bb/org/repo``) is returned unchanged.
    """
    name = name.strip("/")
    if name.count("/") <= 1:
        return f"gh/{name}"
    return name


class CircleCIDestination(Destination):
    """Writes project environment variables through the CircleCI v2 API.

    The create call overwrites an existing variable with the same name.
    CircleCI masks every project variable, so ``sensitive`` is ignored.
    A 429 answer is logged with its rate limit headers and raised as a
    :class:`~vault_token_injector.core.exceptions.RateLimitError`.

    Args:
        token: CircleCI API token.
        address: API base address.
        timeout_seconds: Per-request timeout.
        client: Pre-built HTTP client (tests inject a mock transport).
        retry: Optional retry executor.
    """

    def __init__(
        self,
        token: str | None,
        address: str = DEFAULT_ADDRESS,
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
        retry: RetryExecutor | None = None,
    ) -> None:
        super().__init__(
            client or httpx.Client(base_url=address, timeout=timeout_seconds),
            retry=retry,
        )
        self._token = token

    @property
    def platform(self) -> Platform:
        return Platform.CIRCLECI

    def set_variable(self, identifier: str, key: str, value: str, sensitive: bool) -> None:
        if not self._token:
            raise WriteError(self.platform.value, identifier, "no CircleCI token configured", key=key)

        def create() -> None:
            response = self._request(
                "POST",
                f"/api/v2/project/{project_slug(identifier)}/envvar",
                identifier,
                key,
                json={"name": key, "value": value},
                headers={"Circle-Token": self._token},
            )
            self._check_response(response, identifier, expected=(201,), key=key)

        self._with_retry(create, identifier)
