"""Resilience patterns: bounded retry."""

from vault_token_injector.core.resilience.retry import RetryExecutor

__all__ = [
    "RetryExecutor",
]
