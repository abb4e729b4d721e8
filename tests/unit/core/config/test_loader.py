"""Tests for HOCON configuration loader functions."""

from pathlib import Path

import pytest

from vault_token_injector.core.config import (
    HealthMode,
    InjectorConfig,
    Platform,
    load_from_env,
    load_from_file,
    load_from_string,
)


class TestLoadFromFile:
    """Tests for load_from_file function."""

    def test_load_full_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / ".vault-token-injector.conf"
        config_file.write_text(
            """
            {
              vault_address: "https://vault.example.com"
              token_variable: "VAULT_CI_TOKEN"
              token_ttl_seconds: 7200
              token_refresh_interval_seconds: 600
              orphan_tokens: true
              max_concurrency: 4
              request_timeout_seconds: 5.0
              health_mode: last_cycle

              circleci: [
                { name: "acme/api", vault_role: "ci" }
              ]
              tfcloud: [
                { workspace: "ws-abc123", name: "prod", vault_policies: ["deploy", "read"] }
              ]
              spacelift: [
                { stack: "networking" }
              ]
            }
            """
        )

        config = load_from_file(str(config_file), InjectorConfig)

        assert config.vault_address == "https://vault.example.com"
        assert config.token_variable == "VAULT_CI_TOKEN"
        assert config.token_ttl_seconds == 7200
        assert config.token_refresh_interval_seconds == 600
        assert config.orphan_tokens is True
        assert config.max_concurrency == 4
        assert config.request_timeout_seconds == 5.0
        assert config.health_mode is HealthMode.LAST_CYCLE
        assert config.circleci[0].vault_role == "ci"
        assert config.tfcloud[0].vault_policies == ["deploy", "read"]
        assert [b.platform for b in config.bindings()] == [
            Platform.TFCLOUD,
            Platform.CIRCLECI,
            Platform.SPACELIFT,
        ]

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(Exception):
            load_from_file(str(tmp_path / "missing.conf"), InjectorConfig)


class TestLoadFromString:
    """Tests for load_from_string function."""

    def test_minimal_config_uses_defaults(self) -> None:
        config = load_from_string(
            """
            {
              vault_address: "https://vault.example.com"
              tfcloud: [{ workspace: "ws-1" }]
            }
            """,
            InjectorConfig,
        )
        assert config.token_ttl_seconds == 3600
        assert config.health_mode is HealthMode.CUMULATIVE
        assert config.destination_retry is None
        assert config.tfcloud[0].name is None

    def test_destination_retry_block(self) -> None:
        config = load_from_string(
            """
            {
              vault_address: "https://vault.example.com"
              destination_retry {
                max_attempts: 5
                initial_delay_seconds: 0.5
                max_delay_seconds: 10.0
                backoff_multiplier: 2.0
                jitter_factor: 0.1
                retry_on_exceptions: ["RateLimitError"]
              }
            }
            """,
            InjectorConfig,
        )
        assert config.destination_retry is not None
        assert config.destination_retry.max_attempts == 5
        assert config.destination_retry.retry_on_exceptions == ["RateLimitError"]

    def test_validation_errors_propagate(self) -> None:
        with pytest.raises(ValueError, match="Duplicate tfcloud binding"):
            load_from_string(
                """
                {
                  tfcloud: [{ workspace: "ws-1" }, { workspace: "ws-1" }]
                }
                """,
                InjectorConfig,
            )


class TestLoadFromEnv:
    """Tests for load_from_env function."""

    def test_scalars_and_bindings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VTI_VAULT_ADDRESS", "https://vault.example.com")
        monkeypatch.setenv("VTI_TOKEN_TTL_SECONDS", "7200")
        monkeypatch.setenv("VTI_ORPHAN_TOKENS", "true")
        monkeypatch.setenv("VTI_HEALTH_MODE", "last_cycle")
        monkeypatch.setenv("VTI_TFCLOUD_0__WORKSPACE", "ws-abc123")

        config = load_from_env("VTI_", InjectorConfig)

        assert config.vault_address == "https://vault.example.com"
        assert config.token_ttl_seconds == 7200
        assert config.orphan_tokens is True
        assert config.health_mode is HealthMode.LAST_CYCLE
        assert [b.identifier for b in config.bindings()] == ["ws-abc123"]
        assert config.bindings()[0].platform is Platform.TFCLOUD

    def test_defaults_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VTI_MAX_CONCURRENCY", "4")

        config = load_from_env("VTI_", InjectorConfig)

        assert config.max_concurrency == 4
        assert config.token_variable == "VAULT_TOKEN"
        assert config.bindings() == []
