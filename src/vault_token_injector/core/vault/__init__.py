"""Vault sessions, token material, and credential issuance."""

from vault_token_injector.core.vault.base import Credential, CredentialSource, Session
from vault_token_injector.core.vault.source import VaultCredentialSource
from vault_token_injector.core.vault.token import TokenMaterialProvider

__all__ = [
    "Credential",
    "CredentialSource",
    "Session",
    "TokenMaterialProvider",
    "VaultCredentialSource",
]
