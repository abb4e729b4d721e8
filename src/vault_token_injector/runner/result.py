"""Dispatch and cycle result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from vault_token_injector.core.config.binding import Binding


class OutcomeStatus(str, Enum):
    """Outcome of dispatching one binding."""

    SUCCESS = "success"
    ISSUANCE_FAILED = "issuance_failed"
    WRITE_FAILED = "write_failed"
    CANCELLED = "cancelled"
    ABANDONED = "abandoned"


class CycleStatus(str, Enum):
    """Overall outcome of a rotation cycle."""

    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"
    ABORTED = "aborted"
    SKIPPED = "skipped"


@dataclass
class DispatchOutcome:
    """Result of dispatching a credential to one binding.

    Never carries the credential itself.
    """

    binding: Binding
    status: OutcomeStatus
    duration_ms: int = 0
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status in (OutcomeStatus.ISSUANCE_FAILED, OutcomeStatus.WRITE_FAILED)


@dataclass
class CycleResult:
    """Aggregate result of one refresh-and-dispatch pass."""

    status: CycleStatus
    outcomes: list[DispatchOutcome] = field(default_factory=list)
    duration_ms: int = 0
    session_error: Exception | None = None

    @classmethod
    def from_outcomes(cls, outcomes: list[DispatchOutcome], duration_ms: int) -> CycleResult:
        """Derive the cycle status from per-binding outcomes."""
        succeeded = sum(1 for o in outcomes if o.success)
        if succeeded == len(outcomes):
            status = CycleStatus.SUCCESS
        elif succeeded == 0:
            status = CycleStatus.FAILURE
        else:
            status = CycleStatus.PARTIAL_SUCCESS
        return cls(status=status, outcomes=outcomes, duration_ms=duration_ms)

    @property
    def succeeded(self) -> list[DispatchOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[DispatchOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def attempted(self) -> int:
        """Number of bindings whose dispatch actually started."""
        return sum(1 for o in self.outcomes if o.status is not OutcomeStatus.CANCELLED)
