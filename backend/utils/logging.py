"""Centralized structured logging configuration.

Provides a single point of configuration for structlog across the entire
backend. Call ``configure_logging`` once at application startup and use
``get_logger`` (or ``structlog.get_logger``) for per-module loggers.

Features:
- JSON-formatted log output for production
- Console-friendly colored output for development, with ``error_stack``
  printed verbatim below the record instead of as a quoted value
- Request ID context binding
- Consistent timestamp format (ISO-8601)
"""

import logging
import os
import sys
from typing import Any

import structlog

from errorlog.fields import ERROR_STACK


class StackTraceConsoleRenderer:
    """``ConsoleRenderer`` that prints the captured error stack after the record.

    A stack rendered inline as a key/value pair is unreadable, so the
    ``error_stack`` field is pulled out and appended line by line.
    """

    def __init__(self, colors: bool = True, **kwargs: Any) -> None:
        self._colors = colors
        self._renderer = structlog.dev.ConsoleRenderer(colors=colors, **kwargs)

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> str:
        stack = event_dict.pop(ERROR_STACK, None)
        line = self._renderer(logger, method_name, event_dict)
        if not isinstance(stack, str) or not stack:
            return line

        key = f"{ERROR_STACK}="
        if self._colors:
            key = f"\x1b[31m{ERROR_STACK}\x1b[0m="
        return f"{line}\n{key}\n{stack.rstrip()}"


def configure_logging(
    *,
    json_logs: bool | None = None,
    log_level: str = "INFO",
) -> None:
    """Configure structlog for the entire application.

    Call this once during startup. Subsequent calls are idempotent.

    Args:
        json_logs: Force JSON output. Defaults to ``True`` when
            ``ENVIRONMENT`` is ``"production"``.
        log_level: Root log level (DEBUG, INFO, WARNING, ERROR).
    """
    if json_logs is None:
        json_logs = os.getenv("ENVIRONMENT", "development") == "production"

    log_level_value = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(default=str)
    else:
        renderer = StackTraceConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Mirror level to stdlib root so structlog's ``filter_by_level`` works
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level_value,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound logger for *name*.

    Args:
        name: Typically ``__name__`` of the calling module.
    """
    return structlog.get_logger(name)
