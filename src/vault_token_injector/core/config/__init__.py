"""Configuration models for vault-token-injector.

This package provides dataconf-based configuration models describing the
Vault settings and the per-platform bindings in HOCON format.
"""

from vault_token_injector.core.config.base import HealthMode, LogLevel, Platform
from vault_token_injector.core.config.binding import (
    Binding,
    CircleCIConfig,
    SpaceliftConfig,
    TFCloudConfig,
)
from vault_token_injector.core.config.credentials import PlatformCredentials
from vault_token_injector.core.config.injector import (
    DEFAULT_TOKEN_VARIABLE,
    VAULT_ADDRESS_VARIABLE,
    InjectorConfig,
)
from vault_token_injector.core.config.loader import (
    DEFAULT_CONFIG_FILE,
    load_from_env,
    load_from_file,
    load_from_string,
)
from vault_token_injector.core.config.retry import RetryConfig

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_TOKEN_VARIABLE",
    "VAULT_ADDRESS_VARIABLE",
    "Binding",
    "CircleCIConfig",
    "HealthMode",
    "InjectorConfig",
    "LogLevel",
    "Platform",
    "PlatformCredentials",
    "RetryConfig",
    "SpaceliftConfig",
    "TFCloudConfig",
    "load_from_env",
    "load_from_file",
    "load_from_string",
]
