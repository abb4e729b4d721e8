"""HOCON configuration loader using dataconf.

This module provides functions for loading configuration from HOCON files,
strings, and environment variables using dataconf.
"""

from typing import TypeVar, cast

import dataconf

T = TypeVar("T")

DEFAULT_CONFIG_FILE = ".vault-token-injector.conf"


def load_from_file(path: str, config_class: type[T]) -> T:
    """Load configuration from a HOCON file.

    Args:
        path: Path to the HOCON configuration file
        config_class: The configuration dataclass type to load into

    Returns:
        Instance of config_class populated with configuration from the file

    Example:
        >>> config = load_from_file(".vault-token-injector.conf", InjectorConfig)
    """
    return cast(T, dataconf.file(path, config_class))


def load_from_string(hocon_str: str, config_class: type[T]) -> T:
    """Load configuration from a HOCON string.

    Args:
        hocon_str: HOCON configuration as a string
        config_class: The configuration dataclass type to load into

    Returns:
        Instance of config_class populated with configuration from the string

    Example:
        >>> hocon = '''
        ... {
        ...   vault_address: "https://vault.example.com"
        ...   tfcloud: [{ workspace: "ws-abc123" }]
        ... }
        ... '''
        >>> config = load_from_string(hocon, InjectorConfig)
    """
    return cast(T, dataconf.string(hocon_str, config_class))


def load_from_env(prefix: str, config_class: type[T]) -> T:
    """Load configuration from environment variables.

    Args:
        prefix: Prefix for environment variables (e.g., "VTI_")
        config_class: The configuration dataclass type to load into

    Returns:
        Instance of config_class populated with configuration from env vars

    Example:
        >>> # With VTI_VAULT_ADDRESS=https://vault.example.com
        >>> config = load_from_env("VTI_", InjectorConfig)

    Note:
        Environment variables should use the format: PREFIX_FIELD_NAME=value
    """
    return cast(T, dataconf.env(prefix, config_class))
