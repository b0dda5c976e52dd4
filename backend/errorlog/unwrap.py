"""Walk an exception chain and collect structured log fields from it."""

from typing import Iterator, Optional

from errorlog.fields import ERROR_MESSAGE, Fields
from errorlog.registry import ErrorRegistry, default_registry

DEFAULT_MAX_DEPTH = 100

# Upper bound on the nodes visited in one chain; chains built with
# ``raise ... from`` are finite, this only guards hand-made cycles.
max_chain_depth = DEFAULT_MAX_DEPTH


def set_max_chain_depth(depth: int) -> None:
    global max_chain_depth
    if depth <= 0:
        raise ValueError("max chain depth must be positive")
    max_chain_depth = depth


def cause_of(err: BaseException, include_context: bool = False) -> Optional[BaseException]:
    """Return the error wrapped by *err*, or ``None`` at the end of the chain.

    An explicit ``unwrap()`` method wins, then ``__cause__``. The implicit
    ``__context__`` (the error being handled when *err* was raised) is only
    followed with *include_context*, and never once suppressed with
    ``raise ... from None``.
    """
    unwrap = getattr(err, "unwrap", None)
    if callable(unwrap):
        return unwrap()
    if err.__cause__ is not None:
        return err.__cause__
    if include_context and not err.__suppress_context__:
        return err.__context__
    return None


def iter_chain(
    err: Optional[BaseException],
    max_depth: Optional[int] = None,
    include_context: bool = False,
) -> Iterator[BaseException]:
    """Yield *err* and every error it wraps, each node once."""
    if max_depth is None:
        max_depth = max_chain_depth
    seen: set[int] = set()
    while err is not None and len(seen) < max_depth:
        if id(err) in seen:
            return
        seen.add(id(err))
        yield err
        err = cause_of(err, include_context)


def root_cause(err: BaseException, max_depth: Optional[int] = None) -> BaseException:
    """Return the terminal node of the chain starting at *err*."""
    root = err
    for node in iter_chain(err, max_depth):
        root = node
    return root


def unwrap_error(
    err: Optional[BaseException],
    fields: Fields,
    registry: Optional[ErrorRegistry] = None,
    max_depth: Optional[int] = None,
) -> None:
    """Add information about every error in the chain of *err* to *fields*.

    ``error_message`` is set from the head of the chain. Each node then gets
    a chance to add fields: through its own ``set_log_fields(fields)`` method
    if it has one, otherwise through a handler from the registry. Fields
    written later in the chain overwrite earlier ones.
    """
    if err is None:
        return
    if registry is None:
        registry = default_registry

    fields[ERROR_MESSAGE] = str(err)

    for node in iter_chain(err, max_depth):
        set_log_fields = getattr(node, "set_log_fields", None)
        if callable(set_log_fields):
            set_log_fields(fields)
            continue

        handler = registry.lookup(node)
        if handler is not None:
            handler(node, fields)
