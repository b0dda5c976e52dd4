"""Log entry builder combining request fields and error information."""

from typing import Any, Optional

import structlog
from starlette.requests import Request

from errorlog.context import get_context_fields
from errorlog.fields import ERROR_TYPE, PRIVATE_PREFIX, Fields, type_name
from errorlog.registry import ErrorRegistry
from errorlog.unwrap import root_cause, unwrap_error

ACCESS_LOGGER_NAME = "access"


class LogEntry:
    """Collects fields for one log record and emits it through structlog.

    Example::

        new_entry().with_request(request).with_error(err).error("sync_failed")
    """

    def __init__(self, logger: Any = None, registry: Optional[ErrorRegistry] = None) -> None:
        self.fields: Fields = {}
        self._logger = logger if logger is not None else structlog.get_logger(ACCESS_LOGGER_NAME)
        self._registry = registry

    def with_fields(self, fields: Fields) -> "LogEntry":
        """Add *fields*, skipping keys with the private ``_`` prefix."""
        for key, value in fields.items():
            if not key.startswith(PRIVATE_PREFIX):
                self.fields[key] = value
        return self

    def with_error(self, err: Optional[BaseException]) -> "LogEntry":
        """Add the root cause type and the fields extracted from the error chain."""
        if err is None:
            return self
        self.fields[ERROR_TYPE] = type_name(root_cause(err))
        unwrap_error(err, self.fields, self._registry)
        return self

    def with_request(self, request: Optional[Request]) -> "LogEntry":
        """Add the log context fields of *request*."""
        context_fields = get_context_fields(request)
        if context_fields:
            self.with_fields(context_fields)
        return self

    def info(self, msg: str) -> None:
        self._logger.bind(**self.fields).info(msg)

    def warning(self, msg: str) -> None:
        self._logger.bind(**self.fields).warning(msg)

    def error(self, msg: str) -> None:
        self._logger.bind(**self.fields).error(msg)


def new_entry() -> LogEntry:
    return LogEntry()
