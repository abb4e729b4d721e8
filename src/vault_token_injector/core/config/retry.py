"""Retry configuration for destination writes."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Implements exponential backoff with configurable parameters.  Only
    exceptions named in ``retry_on_exceptions`` are retried; everything
    else fails on the first attempt.
    """

    max_attempts: int = 3
    """Maximum number of attempts including the first one (default: 3)"""

    initial_delay_seconds: float = 1.0
    """Initial delay between retries in seconds (default: 1.0)"""

    max_delay_seconds: float = 30.0
    """Maximum delay between retries in seconds (default: 30.0)"""

    backoff_multiplier: float = 2.0
    """Multiplier for exponential backoff (default: 2.0)"""

    jitter_factor: float = 0.25
    """Random jitter added to each delay as a fraction of it (default: 0.25)"""

    retry_on_exceptions: list[str] = field(
        default_factory=lambda: ["RateLimitError", "DestinationUnavailableError"]
    )
    """Exception class names to retry on (default: rate limits and transport failures)"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay_seconds <= 0:
            raise ValueError("initial_delay_seconds must be positive")
        if self.max_delay_seconds < self.initial_delay_seconds:
            raise ValueError("max_delay_seconds must be >= initial_delay_seconds")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if self.jitter_factor < 0:
            raise ValueError("jitter_factor must be non-negative")
