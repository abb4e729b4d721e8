"""Shared utility functions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any


def safe_call(
    fn: Callable[[], None],
    call_logger: logging.Logger,
    message: str,
    *message_args: Any,
) -> None:
    """Invoke *fn* and log any exception as a warning instead of raising it.

    Used for hooks and other extension points whose failure must not
    interrupt a cycle.

    Args:
        fn: Zero-argument callable to invoke.
        call_logger: Logger instance for warning output.
        message: Log message template (``%s``-style).
        *message_args: Arguments interpolated into *message*.
    """
    try:
        fn()
    except Exception:
        call_logger.warning(message, *message_args, exc_info=True)


def elapsed_ms(clock: Callable[[], float], start: float) -> int:
    """Milliseconds elapsed on *clock* since *start*."""
    return int((clock() - start) * 1000)
