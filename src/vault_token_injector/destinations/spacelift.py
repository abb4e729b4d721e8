"""Spacelift stack environment variables over GraphQL."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.exceptions import TokenExchangeError, WriteError
from vault_token_injector.core.resilience.retry import RetryExecutor
from vault_token_injector.destinations.base import VARIABLE_DESCRIPTION, Destination, EnvVar

logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_MUTATION = """
mutation GetSpaceliftToken($id: ID!, $secret: String!) {
  apiKeyUser(id: $id, secret: $secret) {
    id
    jwt
  }
}
"""


def graphql_endpoint(url: str) -> str:
    """Return the GraphQL endpoint for a Spacelift account URL."""
    url = url.rstrip("/")
    return url if url.endswith("/graphql") else f"{url}/graphql"


def build_stack_config_mutation(
    stack: str, variables: Sequence[EnvVar]
) -> tuple[str, dict[str, Any]]:
    """Build one aliased ``stackConfigAdd`` mutation for all *variables*.

    Values travel as GraphQL variables, never interpolated into the query.

    Returns:
        The query text and its variables payload.
    """
    params = ["$stack: ID!"]
    fields = []
    payload: dict[str, Any] = {"stack": stack}
    for index, var in enumerate(variables):
        name = f"var{index}"
        params.append(f"${name}: ConfigInput!")
        fields.append(f"  {name}: stackConfigAdd(stack: $stack, config: ${name}) {{\n    id\n  }}")
        payload[name] = {
            "id": var.key,
            "value": var.value,
            "type": "ENVIRONMENT_VARIABLE",
            "writeOnly": var.sensitive,
            "description": VARIABLE_DESCRIPTION,
        }
    query = "mutation SetStackConfig(" + ", ".join(params) + ") {\n" + "\n".join(fields) + "\n}"
    return query, payload


class SpaceliftDestination(Destination):
    """Writes stack environment variables through the Spacelift GraphQL API.

    Each write exchanges the API key for a fresh JWT first; the JWT is
    returned to the caller rather than stored on the adapter, so bindings
    dispatched concurrently never share or overwrite each other's token.
    All variables for one stack go out in a single mutation.

    Args:
        url: Spacelift account URL (``https://<account>.app.spacelift.io``).
        api_key_id: API key ID.
        api_key_secret: API key secret.
        timeout_seconds: Per-request timeout.
        client: Pre-built HTTP client (tests inject a mock transport).
        retry: Optional retry executor, applied to the mutation only.
    """

    def __init__(
        self,
        url: str | None,
        api_key_id: str | None,
        api_key_secret: str | None,
        timeout_seconds: float = 10.0,
        client: httpx.Client | None = None,
        retry: RetryExecutor | None = None,
    ) -> None:
        super().__init__(client or httpx.Client(timeout=timeout_seconds), retry=retry)
        self._endpoint = graphql_endpoint(url) if url else ""
        self._api_key_id = api_key_id
        self._api_key_secret = api_key_secret

    @property
    def platform(self) -> Platform:
        return Platform.SPACELIFT

    def set_variable(self, identifier: str, key: str, value: str, sensitive: bool) -> None:
        self.set_variables(identifier, [EnvVar(key=key, value=value, sensitive=sensitive)])

    def set_variables(self, identifier: str, variables: Sequence[EnvVar]) -> None:
        if not (self._endpoint and self._api_key_id and self._api_key_secret):
            raise WriteError(self.platform.value, identifier, "spacelift client config is incomplete")

        jwt = self.exchange_token(identifier)
        query, payload = build_stack_config_mutation(identifier, variables)
        logger.info(
            "setting env vars %s in spacelift stack %s",
            ",".join(v.key for v in variables),
            identifier,
        )
        self._with_retry(lambda: self._query(query, payload, identifier, jwt=jwt), identifier)

    def exchange_token(self, identifier: str) -> str:
        """Exchange the API key for a JWT.

        Raises:
            TokenExchangeError: If the exchange fails or returns no JWT.
        """
        try:
            data = self._query(
                TOKEN_EXCHANGE_MUTATION,
                {"id": self._api_key_id, "secret": self._api_key_secret},
                identifier,
            )
        except WriteError as exc:
            raise TokenExchangeError(
                self.platform.value, identifier, f"could not refresh API auth via JWT: {exc}"
            ) from exc

        jwt = ((data.get("apiKeyUser") or {}).get("jwt")) or ""
        if not jwt:
            raise TokenExchangeError(self.platform.value, identifier, "jwt is empty")
        return jwt

    def _query(
        self,
        query: str,
        variables: dict[str, Any],
        identifier: str,
        jwt: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if jwt:
            headers["Authorization"] = f"Bearer {jwt}"

        response = self._request(
            "POST",
            self._endpoint,
            identifier,
            json={"query": query, "variables": variables},
            headers=headers,
        )
        self._check_response(response, identifier, expected=(200,))

        try:
            body = response.json()
        except ValueError as exc:
            raise WriteError(self.platform.value, identifier, f"invalid response: {exc}") from exc

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            raise WriteError(self.platform.value, identifier, f"graphql errors: {messages}")
        return body.get("data") or {}
