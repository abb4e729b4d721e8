"""Per-platform binding configuration models.

Each configuration entry names one remote project, workspace or stack that
should receive a freshly minted Vault token every cycle.  Entries are turned
into immutable :class:`Binding` objects once the configuration is loaded.
"""

from dataclasses import dataclass, field

from vault_token_injector.core.config.base import Platform


@dataclass(frozen=True)
class Binding:
    """One destination that receives a credential each cycle.

    Args:
        platform: Destination platform family.
        identifier: Remote identifier (project slug, workspace ID, stack ID).
        display_name: Optional human-friendly name used in logs.
        vault_role: Vault token role to scope issuance to (optional).
        vault_policies: Policies attached to the issued token.
    """

    platform: Platform
    identifier: str
    display_name: str | None = None
    vault_role: str | None = None
    vault_policies: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        """Name used when logging this binding."""
        return self.display_name or self.identifier

    @property
    def key(self) -> tuple[Platform, str]:
        """Uniqueness key within a configuration."""
        return (self.platform, self.identifier)


@dataclass
class CircleCIConfig:
    """A CircleCI project whose environment variables are updated."""

    name: str
    """Project slug, e.g. ``gh/org/repo`` or ``org/repo`` (required)"""

    vault_role: str | None = None
    """Vault role to use for the token in this project (optional)"""

    vault_policies: list[str] = field(default_factory=list)
    """Policies given to the token in this project (default: [])"""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("circleci project name is required")

    def to_binding(self) -> Binding:
        return Binding(
            platform=Platform.CIRCLECI,
            identifier=self.name,
            vault_role=self.vault_role,
            vault_policies=tuple(self.vault_policies),
        )


@dataclass
class TFCloudConfig:
    """A Terraform Cloud workspace whose environment variables are updated."""

    workspace: str
    """Workspace ID, starts with ``ws-`` (required)"""

    name: str | None = None
    """Optional display name for the workspace"""

    vault_role: str | None = None
    """Vault role to use for the token in this workspace (optional)"""

    vault_policies: list[str] = field(default_factory=list)
    """Policies given to the token in this workspace (default: [])"""

    def __post_init__(self) -> None:
        if not self.workspace:
            raise ValueError("tfcloud workspace is required")

    def to_binding(self) -> Binding:
        return Binding(
            platform=Platform.TFCLOUD,
            identifier=self.workspace,
            display_name=self.name,
            vault_role=self.vault_role,
            vault_policies=tuple(self.vault_policies),
        )


@dataclass
class SpaceliftConfig:
    """A Spacelift stack whose environment variables are updated."""

    stack: str
    """Stack ID to inject variables into (required)"""

    name: str | None = None
    """Optional display name for the stack"""

    vault_role: str | None = None
    """Vault role to use for the token in this stack (optional)"""

    vault_policies: list[str] = field(default_factory=list)
    """Policies given to the token in this stack (default: [])"""

    def __post_init__(self) -> None:
        if not self.stack:
            raise ValueError("spacelift stack is required")

    def to_binding(self) -> Binding:
        return Binding(
            platform=Platform.SPACELIFT,
            identifier=self.stack,
            display_name=self.name,
            vault_role=self.vault_role,
            vault_policies=tuple(self.vault_policies),
        )
