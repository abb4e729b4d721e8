"""Reading the Vault session token from a file or the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from vault_token_injector.core.exceptions import SessionError

logger = logging.getLogger(__name__)

VAULT_TOKEN_ENV = "VAULT_TOKEN"


class TokenMaterialProvider:
    """Supplies the session token at the start of every cycle.

    A token file takes precedence over the environment, and its content is
    stripped of surrounding whitespace.  The file is re-read each cycle so
    an agent rotating it is picked up without a restart.

    Args:
        token_file: Optional path to a file holding the token.
        environ: Environment mapping. Defaults to ``os.environ``.
    """

    def __init__(
        self,
        token_file: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._token_file = Path(token_file) if token_file else None
        self._environ = environ if environ is not None else os.environ

    @property
    def token_file(self) -> Path | None:
        return self._token_file

    def read(self) -> str:
        """Return the current token material.

        Raises:
            SessionError: If the token file is set but cannot be read or decoded.
        """
        if self._token_file is not None:
            logger.debug("attempting to refresh token from file")
            try:
                return self._token_file.read_text(encoding="utf-8").strip()
            except (OSError, UnicodeDecodeError) as exc:
                raise SessionError(
                    f"vault token file is set but could not be read: {exc}"
                ) from exc
        return self._environ.get(VAULT_TOKEN_ENV, "").strip()
