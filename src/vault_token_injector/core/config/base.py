"""Base types and enums for configuration models."""

from enum import Enum


class Platform(str, Enum):
    """Destination platform families."""

    CIRCLECI = "circleci"
    TFCLOUD = "tfcloud"
    SPACELIFT = "spacelift"


class HealthMode(str, Enum):
    """How session errors affect the health endpoint."""

    CUMULATIVE = "cumulative"
    """Degraded forever once any session refresh has failed"""

    LAST_CYCLE = "last_cycle"
    """Degraded only while the most recent session refresh failed"""


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
