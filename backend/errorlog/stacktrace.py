"""Opt-in stack capture for errors.

``trace`` wraps an error in a ``TracedError`` that remembers where the
error was first seen. The wrapper is transparent for the message and
contributes an ``error_stack`` field when the error is logged. Capturing
a stack isn't free, so errors registered with
``inhibit_stacktrace_for_error`` (e.g. "not found" sentinels) are returned
untouched, and an error that already carries a stack is never wrapped twice.
"""

import traceback
from typing import Any, Optional

import structlog

from errorlog.fields import ERROR_MESSAGE, ERROR_STACK, ERROR_TYPE, Fields, type_name
from errorlog.registry import StackInhibitSet, default_inhibit_set
from errorlog.unwrap import iter_chain

logger = structlog.get_logger(__name__)

# When set, ``trace`` logs the error and stack immediately, for call sites
# where the returned error might be dropped before it reaches the access log.
log_call_stack_directly = False


def set_log_call_stack_directly(enabled: bool) -> None:
    global log_call_stack_directly
    log_call_stack_directly = enabled


class TracedError(Exception):
    """Error wrapper holding the stack captured by the first ``trace`` call."""

    def __init__(self, err: BaseException, stack: str) -> None:
        super().__init__(err, stack)
        self._err = err
        self._stack = stack
        self.__cause__ = err
        self.__suppress_context__ = True

    def __str__(self) -> str:
        return str(self._err)

    def __repr__(self) -> str:
        return f"TracedError({self._err!r})"

    @property
    def err(self) -> BaseException:
        return self._err

    @property
    def stack(self) -> str:
        return self._stack

    @property
    def type_name(self) -> str:
        """Type label of the wrapped error."""
        return type_name(self._err)

    def unwrap(self) -> BaseException:
        return self._err

    def set_log_fields(self, fields: Fields) -> None:
        fields[ERROR_STACK] = self._stack


def _capture_stack(err: Optional[BaseException], skip: int) -> str:
    frames = traceback.extract_stack()[: -(skip + 1)]
    if err is not None and err.__traceback__ is not None:
        frames.extend(traceback.extract_tb(err.__traceback__))
    return "".join(traceback.format_list(frames))


def get_traced_error(err: Optional[BaseException]) -> Optional[TracedError]:
    """Return the ``TracedError`` in the chain of *err*, if there is one."""
    for node in iter_chain(err):
        if isinstance(node, TracedError):
            return node
    return None


def trace(
    err: Any,
    *,
    inhibit_set: Optional[StackInhibitSet] = None,
    log_directly: Optional[bool] = None,
) -> Optional[BaseException]:
    """Wrap *err* in a ``TracedError`` carrying the current call stack.

    Returns *err* unchanged when its instance or class is inhibited, or when
    its chain already contains a ``TracedError``. Returns ``None`` for
    ``None`` and for anything that isn't an exception instance; the latter
    is almost always an exception class passed instead of an instance and
    gets logged with a stack so the call site can be found.
    """
    if err is None:
        return None

    if not isinstance(err, BaseException):
        logger.error(
            "non_exception_traced",
            **{ERROR_TYPE: type_name(err), ERROR_STACK: _capture_stack(None, 1)},
        )
        return None

    if inhibit_set is None:
        inhibit_set = default_inhibit_set
    if inhibit_set.is_inhibited(err):
        return err

    if get_traced_error(err) is not None:
        return err

    stack = _capture_stack(err, 1)
    if log_directly is None:
        log_directly = log_call_stack_directly
    if log_directly:
        logger.error("ERROR", **{ERROR_MESSAGE: str(err), ERROR_STACK: stack})

    return TracedError(err, stack)
