"""Terraform Cloud workspace variables with upsert semantics."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.exceptions import WriteError
from vault_token_injector.core.resilience.retry import RetryExecutor
from vault_token_injector.destinations.base import VARIABLE_DESCRIPTION, Destination

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "https://app.terraform.io"
JSON_API = "application/vnd.api+json"


class TFCloudDestination(Destination):
    """Upserts ``env`` category variables in a Terraform Cloud workspace.

    Lists the workspace variables first; an existing variable with the same
    key is updated in place by its ID, otherwise a new one is created.
    Writing the same key twice therefore leaves a single variable holding
    the latest value.

    Args:
        token: Terraform Cloud API token.
        address: TFC / TFE base address.
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
        return Platform.TFCLOUD

    def set_variable(self, identifier: str, key: str, value: str, sensitive: bool) -> None:
        if not self._token:
            raise WriteError(self.platform.value, identifier, "no TFCloud token configured", key=key)

        # A retry re-lists first so a create that landed is patched, not duplicated.
        self._with_retry(lambda: self._upsert(identifier, key, value, sensitive), identifier)

    def _upsert(self, identifier: str, key: str, value: str, sensitive: bool) -> None:
        existing_id = self.find_variable_id(identifier, key)
        attributes: dict[str, Any] = {
            "key": key,
            "value": value,
            "description": VARIABLE_DESCRIPTION,
            "category": "env",
            "hcl": False,
            "sensitive": sensitive,
        }

        if existing_id is None:
            logger.debug("creating variable %s in workspace %s", key, identifier)
            payload = {"data": {"type": "vars", "attributes": attributes}}
            response = self._request(
                "POST",
                f"/api/v2/workspaces/{identifier}/vars",
                identifier,
                key,
                content=json.dumps(payload),
                headers=self._headers(),
            )
            self._check_response(response, identifier, expected=(201,), key=key)
        else:
            logger.debug("updating variable %s (%s) in workspace %s", key, existing_id, identifier)
            payload = {"data": {"id": existing_id, "type": "vars", "attributes": attributes}}
            response = self._request(
                "PATCH",
                f"/api/v2/workspaces/{identifier}/vars/{existing_id}",
                identifier,
                key,
                content=json.dumps(payload),
                headers=self._headers(),
            )
            self._check_response(response, identifier, expected=(200,), key=key)

    def find_variable_id(self, identifier: str, key: str) -> str | None:
        """Return the ID of the ``env`` variable named *key*, or ``None``."""
        response = self._request(
            "GET",
            f"/api/v2/workspaces/{identifier}/vars",
            identifier,
            key,
            headers=self._headers(),
        )
        self._check_response(response, identifier, expected=(200,), key=key)

        try:
            items = response.json().get("data") or []
        except ValueError as exc:
            raise WriteError(
                self.platform.value, identifier, f"invalid variable list: {exc}", key=key
            ) from exc

        for item in items:
            attributes = item.get("attributes") or {}
            if attributes.get("key") == key and attributes.get("category", "env") == "env":
                return item.get("id")
        return None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": JSON_API,
            "Accept": JSON_API,
        }
