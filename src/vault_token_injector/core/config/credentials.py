"""API credentials for the destination platforms."""

from __future__ import annotations

from dataclasses import dataclass


def _mask(value: str | None) -> str:
    return "***" if value else "None"


@dataclass(frozen=True)
class PlatformCredentials:
    """Long-lived API credentials read from flags or the environment.

    Values are masked in ``__repr__`` to prevent accidental leakage in logs
    or tracebacks.

    Args:
        circleci_token: CircleCI personal API token.
        tfcloud_token: Terraform Cloud user or team token.
        spacelift_api_key_id: Spacelift API key ID.
        spacelift_api_key_secret: Spacelift API key secret.
    """

    circleci_token: str | None = None
    tfcloud_token: str | None = None
    spacelift_api_key_id: str | None = None
    spacelift_api_key_secret: str | None = None

    def __repr__(self) -> str:
        return (
            f"PlatformCredentials("
            f"circleci_token={_mask(self.circleci_token)}, "
            f"tfcloud_token={_mask(self.tfcloud_token)}, "
            f"spacelift_api_key_id={self.spacelift_api_key_id!r}, "
            f"spacelift_api_key_secret={_mask(self.spacelift_api_key_secret)})"
        )
