"""Command-line interface for the token injector."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from collections.abc import Mapping

from prometheus_client import CollectorRegistry

from vault_token_injector.core.config.base import LogLevel
from vault_token_injector.core.config.credentials import PlatformCredentials
from vault_token_injector.core.config.injector import VAULT_ADDRESS_VARIABLE, InjectorConfig
from vault_token_injector.core.config.loader import DEFAULT_CONFIG_FILE, load_from_file
from vault_token_injector.core.exceptions import CycleFailedError
from vault_token_injector.core.metrics.exporters import PrometheusRegistry
from vault_token_injector.core.metrics.injector import METRIC_DESCRIPTIONS, InjectorMetrics
from vault_token_injector.core.vault.source import VaultCredentialSource
from vault_token_injector.core.vault.token import TokenMaterialProvider
from vault_token_injector.destinations import build_destinations
from vault_token_injector.runner.dispatcher import Dispatcher
from vault_token_injector.runner.hooks import CompositeHooks
from vault_token_injector.runner.hooks_builtin import LoggingHooks, MetricsHooks
from vault_token_injector.runner.scheduler import RotationScheduler
from vault_token_injector.runner.server import DEFAULT_METRICS_PORT, MetricsServer, create_app

logger = logging.getLogger(__name__)

SPACELIFT_URL_VARIABLE = "SPACELIFT_API_KEY_ENDPOINT"


def _env_flag(
    parser: argparse.ArgumentParser,
    flag: str,
    env_var: str,
    environ: Mapping[str, str],
    help_text: str,
) -> None:
    parser.add_argument(
        flag,
        default=environ.get(env_var) or None,
        help=f"{help_text} [{env_var}]",
    )


def _build_parser(environ: Mapping[str, str] | None = None) -> argparse.ArgumentParser:
    environ = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(
        prog="vault-token-injector",
        description="Mint short-lived Vault tokens and inject them into CircleCI, TFCloud and Spacelift.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to the HOCON configuration file (default: {DEFAULT_CONFIG_FILE}).",
    )
    _env_flag(parser, "--circle-token", "CIRCLE_CI_TOKEN", environ, "CircleCI API token.")
    _env_flag(parser, "--tfcloud-token", "TFCLOUD_TOKEN", environ, "Terraform Cloud API token.")
    _env_flag(
        parser,
        "--vault-token-file",
        "VAULT_TOKEN_FILE",
        environ,
        "File holding the Vault token; takes precedence over VAULT_TOKEN.",
    )
    _env_flag(parser, "--spacelift-api-key-id", "SPACELIFT_API_KEY_ID", environ, "Spacelift API key ID.")
    _env_flag(
        parser,
        "--spacelift-api-key-secret",
        "SPACELIFT_API_KEY_SECRET",
        environ,
        "Spacelift API key secret.",
    )
    _env_flag(parser, "--spacelift-url", SPACELIFT_URL_VARIABLE, environ, "Spacelift account URL.")
    parser.add_argument(
        "--run-once",
        action="store_true",
        default=False,
        help="Run a single rotation cycle and exit; exits 1 if any error occurred.",
    )
    parser.add_argument(
        "--no-metrics",
        action="store_true",
        default=False,
        help="Do not serve /metrics and /health.",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=DEFAULT_METRICS_PORT,
        help=f"Port for /metrics and /health (default: {DEFAULT_METRICS_PORT}).",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=LogLevel.INFO.value,
        help="Set the logging level (default: INFO).",
    )
    return parser


def _resolve_config(
    config: InjectorConfig,
    args: argparse.Namespace,
    environ: Mapping[str, str],
) -> InjectorConfig:
    """Fill the Vault address and Spacelift URL from the process boundary."""
    changes: dict[str, str] = {}
    if not config.vault_address:
        changes["vault_address"] = environ.get(VAULT_ADDRESS_VARIABLE, "")
    if args.spacelift_url:
        changes["spacelift_url"] = args.spacelift_url
    return dataclasses.replace(config, **changes) if changes else config


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    """CLI entrypoint.

    Args:
        argv: Command-line arguments. Defaults to ``sys.argv[1:]``.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Exit code: 0 on success or after a stop signal, 1 when the
        configuration cannot be loaded or a one-shot run recorded errors.
    """
    environ = os.environ if environ is None else environ
    parser = _build_parser(environ)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = _resolve_config(load_from_file(args.config, InjectorConfig), args, environ)
    except Exception as exc:
        logger.error("Failed to load config from %s: %s", args.config, exc)
        return 1

    if not config.vault_address:
        logger.error("vault_address must be set in the config or via %s", VAULT_ADDRESS_VARIABLE)
        return 1

    credentials = PlatformCredentials(
        circleci_token=args.circle_token,
        tfcloud_token=args.tfcloud_token,
        spacelift_api_key_id=args.spacelift_api_key_id,
        spacelift_api_key_secret=args.spacelift_api_key_secret,
    )

    prometheus = PrometheusRegistry(CollectorRegistry(), descriptions=METRIC_DESCRIPTIONS)
    metrics = InjectorMetrics(prometheus, health_mode=config.health_mode)
    source = VaultCredentialSource(config.vault_address, timeout_seconds=config.request_timeout_seconds)
    destinations = build_destinations(config, credentials)
    hooks = CompositeHooks(LoggingHooks(), MetricsHooks(prometheus))
    dispatcher = Dispatcher.from_config(config, source, destinations, metrics, hooks=hooks)
    scheduler = RotationScheduler(
        config,
        source,
        dispatcher,
        metrics,
        TokenMaterialProvider(args.vault_token_file, environ=environ),
        hooks=hooks,
    )

    server: MetricsServer | None = None
    if not args.no_metrics:
        server = MetricsServer(create_app(metrics, prometheus.collector_registry), port=args.metrics_port)
        server.start()

    try:
        if args.run_once:
            try:
                scheduler.run_once()
            except CycleFailedError as exc:
                logger.error("%s", exc)
                return 1
            return 0
        scheduler.install_signal_handlers()
        scheduler.run_forever()
        return 0
    finally:
        if server is not None:
            server.stop()
        for destination in destinations.values():
            destination.close()


if __name__ == "__main__":
    sys.exit(main())
