"""Top-level injector configuration model."""

from dataclasses import dataclass, field

from .base import HealthMode
from .binding import Binding, CircleCIConfig, SpaceliftConfig, TFCloudConfig
from .retry import RetryConfig

DEFAULT_TOKEN_VARIABLE = "VAULT_TOKEN"
VAULT_ADDRESS_VARIABLE = "VAULT_ADDR"


@dataclass
class InjectorConfig:
    """Top-level configuration for the token injector.

    Holds the global Vault settings, the fan-out tuning knobs and the three
    per-platform binding lists.
    """

    vault_address: str = ""
    """Address of the Vault server, also published as ``VAULT_ADDR`` (required at run time)"""

    token_variable: str = DEFAULT_TOKEN_VARIABLE
    """Variable name the token is written under (default: VAULT_TOKEN)"""

    token_ttl_seconds: int = 3600
    """TTL of every minted token in seconds (default: 3600)"""

    token_refresh_interval_seconds: int = 1800
    """Interval between cycles in seconds (default: 1800)"""

    orphan_tokens: bool = False
    """Create tokens without a parent (default: False)"""

    max_concurrency: int = 10
    """Maximum number of bindings dispatched in parallel (default: 10)"""

    request_timeout_seconds: float = 10.0
    """Timeout applied to every Vault and platform API call (default: 10.0)"""

    drain_timeout_seconds: float = 30.0
    """How long shutdown waits for in-flight bindings (default: 30.0)"""

    health_mode: HealthMode = HealthMode.CUMULATIVE
    """How session errors affect /health (default: cumulative)"""

    destination_retry: RetryConfig | None = None
    """Retry policy for platform writes (optional, no retry when unset)"""

    circleci_address: str = "https://circleci.com"
    """CircleCI API base address (default: https://circleci.com)"""

    tfcloud_address: str = "https://app.terraform.io"
    """Terraform Cloud / Enterprise base address (default: https://app.terraform.io)"""

    spacelift_url: str | None = None
    """Spacelift account URL, e.g. ``https://acme.app.spacelift.io`` (optional)"""

    circleci: list[CircleCIConfig] = field(default_factory=list)
    """CircleCI projects to update (default: [])"""

    tfcloud: list[TFCloudConfig] = field(default_factory=list)
    """Terraform Cloud workspaces to update (default: [])"""

    spacelift: list[SpaceliftConfig] = field(default_factory=list)
    """Spacelift stacks to update (default: [])"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.token_variable:
            raise ValueError("token_variable must not be empty")
        if self.token_ttl_seconds <= 0:
            raise ValueError("token_ttl_seconds must be positive")
        if self.token_refresh_interval_seconds <= 0:
            raise ValueError("token_refresh_interval_seconds must be positive")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.drain_timeout_seconds < 0:
            raise ValueError("drain_timeout_seconds must be non-negative")

        seen: set[tuple[str, str]] = set()
        for binding in self.bindings():
            if binding.key in seen:
                raise ValueError(
                    f"Duplicate {binding.platform.value} binding '{binding.identifier}'"
                )
            seen.add(binding.key)

    def bindings(self) -> list[Binding]:
        """Return every configured binding, TFCloud first, then CircleCI, then Spacelift."""
        entries: list[TFCloudConfig | CircleCIConfig | SpaceliftConfig] = [
            *self.tfcloud,
            *self.circleci,
            *self.spacelift,
        ]
        return [entry.to_binding() for entry in entries]
