"""Utility modules for the backend."""

from utils.logging import (
    StackTraceConsoleRenderer,
    configure_logging,
    get_logger,
)

__all__ = [
    # Logging
    "StackTraceConsoleRenderer",
    "configure_logging",
    "get_logger",
]
