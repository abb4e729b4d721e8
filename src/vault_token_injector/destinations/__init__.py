"""Destination platform adapters and their factory."""

from __future__ import annotations

import logging

from vault_token_injector.core.config.base import Platform
from vault_token_injector.core.config.credentials import PlatformCredentials
from vault_token_injector.core.config.injector import InjectorConfig
from vault_token_injector.core.resilience.retry import RetryExecutor
from vault_token_injector.destinations.base import Destination, EnvVar
from vault_token_injector.destinations.circleci import CircleCIDestination
from vault_token_injector.destinations.spacelift import SpaceliftDestination
from vault_token_injector.destinations.tfcloud import TFCloudDestination

logger = logging.getLogger(__name__)

__all__ = [
    "CircleCIDestination",
    "Destination",
    "EnvVar",
    "SpaceliftDestination",
    "TFCloudDestination",
    "build_destinations",
]


def build_destinations(
    config: InjectorConfig,
    credentials: PlatformCredentials,
) -> dict[Platform, Destination]:
    """Create one adapter per platform that has bindings configured.

    A platform configured without its API credentials is reported at
    start-up; its writes then fail per binding at run time.
    """
    retry = RetryExecutor(config.destination_retry) if config.destination_retry else None
    timeout = config.request_timeout_seconds
    destinations: dict[Platform, Destination] = {}

    if config.circleci:
        if not credentials.circleci_token:
            logger.error("CircleCI is configured but no token was provided.")
        destinations[Platform.CIRCLECI] = CircleCIDestination(
            credentials.circleci_token,
            address=config.circleci_address,
            timeout_seconds=timeout,
            retry=retry,
        )

    if config.tfcloud:
        if not credentials.tfcloud_token:
            logger.error("TFCloud is configured but no token was provided.")
        destinations[Platform.TFCLOUD] = TFCloudDestination(
            credentials.tfcloud_token,
            address=config.tfcloud_address,
            timeout_seconds=timeout,
            retry=retry,
        )

    if config.spacelift:
        if not (config.spacelift_url and credentials.spacelift_api_key_id and credentials.spacelift_api_key_secret):
            logger.error("Spacelift is configured but the API key or URL is missing.")
        destinations[Platform.SPACELIFT] = SpaceliftDestination(
            config.spacelift_url,
            credentials.spacelift_api_key_id,
            credentials.spacelift_api_key_secret,
            timeout_seconds=timeout,
            retry=retry,
        )

    return destinations
