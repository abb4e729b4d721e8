"""HashiCorp Vault credential source built on ``hvac``."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import hvac

from vault_token_injector.core.exceptions import IssuanceError, SessionError
from vault_token_injector.core.vault.base import Credential, CredentialSource, Session

logger = logging.getLogger(__name__)


class VaultCredentialSource(CredentialSource):
    """Validate sessions and mint child or orphan tokens in Vault.

    A new ``hvac.Client`` is built on every :meth:`refresh_session` so a
    rotated token file is picked up on the next cycle.  Once the new
    session validates, the previous client's adapter is closed; a client
    that fails validation is closed straight away.

    Args:
        address: Vault server URL.
        timeout_seconds: Timeout applied to every Vault request.
        client_factory: Injectable client constructor for testing.
            Defaults to ``hvac.Client``.
    """

    def __init__(
        self,
        address: str,
        timeout_seconds: float = 10.0,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        if not address:
            raise ValueError("address is required")
        self._address = address
        self._timeout = timeout_seconds
        self._client_factory = client_factory or hvac.Client
        self._client: Any = None

    @property
    def address(self) -> str:
        return self._address

    def refresh_session(self, token_material: str) -> Session:
        token = token_material.strip() if token_material else ""
        if not token:
            raise SessionError("no Vault token available")

        client = self._client_factory(url=self._address, token=token, timeout=self._timeout)
        try:
            response = client.auth.token.lookup_self()
        except Exception as exc:
            logger.debug("error looking up self: %s", exc)
            client.adapter.close()
            raise SessionError("current token was unable to lookup self, assuming invalid") from exc

        data = (response or {}).get("data") or {}
        session = Session(
            client=client,
            accessor=data.get("accessor"),
            display_name=data.get("display_name"),
            policies=tuple(data.get("policies") or ()),
            ttl_seconds=int(data.get("ttl") or 0),
        )
        previous, self._client = self._client, client
        if previous is not None:
            previous.adapter.close()
        logger.debug(
            "Vault session valid: accessor=%s display_name=%s ttl=%ss",
            session.accessor,
            session.display_name,
            session.ttl_seconds,
        )
        return session

    def issue_credential(
        self,
        session: Session,
        role: str | None,
        policies: Sequence[str],
        ttl_seconds: int,
        orphan: bool = False,
        *,
        label: str = "token",
    ) -> Credential:
        if ttl_seconds <= 0:
            raise IssuanceError(label, "ttl must be positive")

        options: dict[str, Any] = {"ttl": f"{ttl_seconds}s", "no_parent": orphan}
        if role is not None:
            logger.debug("adding token role %s", role)
            options["role_name"] = role
        if policies:
            logger.debug("adding policies %s to token", ",".join(policies))
            options["policies"] = list(policies)

        try:
            response = session.client.auth.token.create(**options)
        except Exception as exc:
            raise IssuanceError(label, exc) from exc

        auth = (response or {}).get("auth") or {}
        client_token = auth.get("client_token")
        if not client_token:
            raise IssuanceError(label, "Vault response did not contain a client token")

        return Credential(
            value=client_token,
            ttl_seconds=int(auth.get("lease_duration") or ttl_seconds),
            accessor=auth.get("accessor"),
        )
