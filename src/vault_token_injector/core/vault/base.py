"""Credential source abstractions and models."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Session:
    """A validated Vault identity used to mint tokens for one cycle.

    Shared read-only by every dispatch task of the cycle.

    Args:
        client: Authenticated ``hvac.Client``.
        accessor: Accessor of the session token, safe to log.
        display_name: Display name reported by lookup-self.
        policies: Policies attached to the session token.
        ttl_seconds: Remaining TTL of the session token (0 for non-expiring).
    """

    client: Any = field(repr=False, compare=False)
    accessor: str | None = None
    display_name: str | None = None
    policies: tuple[str, ...] = ()
    ttl_seconds: int = 0


@dataclass(frozen=True)
class Credential:
    """A freshly minted Vault token for exactly one binding.

    The ``value`` field is masked in ``__repr__`` to prevent accidental
    leakage in logs or tracebacks.

    Args:
        value: The client token.
        ttl_seconds: Lease duration granted by Vault.
        accessor: Token accessor, safe to log.
    """

    value: str
    ttl_seconds: int
    accessor: str | None = None

    def __repr__(self) -> str:
        return (
            f"Credential("
            f"value=***, "
            f"ttl_seconds={self.ttl_seconds!r}, "
            f"accessor={self.accessor!r})"
        )


class CredentialSource(ABC):
    """Base class for credential sources.

    Subclasses validate a session against the secret broker and mint
    scoped credentials on demand.
    """

    @abstractmethod
    def refresh_session(self, token_material: str) -> Session:
        """Validate *token_material* and return a session.

        Raises:
            SessionError: If the token is empty or fails validation.
        """
        ...

    @abstractmethod
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
        """Mint a new credential.

        Args:
            session: Session returned by :meth:`refresh_session`.
            role: Token role to scope issuance to, if any.
            policies: Explicit policies for the token.
            ttl_seconds: Token TTL; always passed explicitly.
            orphan: Create the token without a parent.
            label: Name of the binding, used in error messages.

        Raises:
            IssuanceError: If the credential could not be minted.
        """
        ...
