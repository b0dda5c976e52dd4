"""Process-wide tables keyed by error identity.

An identity is either an exception *instance* (a sentinel such as
``ErrNotFound = LookupError("not found")``) or an exception *class*.
Instances are matched by hash/equality, classes against the MRO of the
error's type, most specific class first. Instance matches win over class
matches so a sentinel can override a blanket handler for its type.

Tables are populated at startup, before the server takes traffic, and
are only read afterwards. Lookups take no lock.
"""

from typing import Any, Generic, Optional, TypeVar

import structlog

from errorlog.fields import ErrLogFunc, type_name

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


class _IdentityTable(Generic[T]):
    """Value table plus type table sharing the identity rules."""

    def __init__(self) -> None:
        self._by_value: dict[Any, T] = {}
        self._by_type: dict[type, T] = {}

    def _put(self, identity: Any, payload: T) -> None:
        if identity is None:
            return
        if isinstance(identity, type):
            self._by_type[identity] = payload
            return
        if not _is_hashable(identity):
            # Unhashable instances can't be value keys; register the class instead.
            logger.debug(
                "unhashable_error_identity_skipped",
                error_type=type_name(identity),
            )
            return
        self._by_value[identity] = payload

    def _find(self, err: BaseException) -> Optional[T]:
        if self._by_value and _is_hashable(err):
            payload = self._by_value.get(err)
            if payload is not None:
                return payload
        if self._by_type:
            for cls in type(err).__mro__:
                payload = self._by_type.get(cls)
                if payload is not None:
                    return payload
        return None

    def clear(self) -> None:
        self._by_value.clear()
        self._by_type.clear()

    def __len__(self) -> int:
        return len(self._by_value) + len(self._by_type)


class ErrorRegistry(_IdentityTable[ErrLogFunc]):
    """Maps error identities to functions that add log fields for them."""

    def register(self, handler: ErrLogFunc, *identities: Any) -> None:
        """Register *handler* for every identity in *identities*.

        Use this for error types you don't control. Your own exception
        classes can implement ``set_log_fields(fields)`` instead.

        Example::

            def log_os_error(err, fields):
                fields["errno"] = err.errno
                fields["filename"] = err.filename

            registry.register(log_os_error, OSError)
        """
        for identity in identities:
            self._put(identity, handler)

    def lookup(self, err: BaseException) -> Optional[ErrLogFunc]:
        return self._find(err)


class StackInhibitSet(_IdentityTable[bool]):
    """Error identities that ``trace`` must not capture a stack for."""

    def inhibit(self, *identities: Any) -> None:
        for identity in identities:
            self._put(identity, True)

    def is_inhibited(self, err: BaseException) -> bool:
        return self._find(err) is not None

    def __contains__(self, err: object) -> bool:
        return isinstance(err, BaseException) and self.is_inhibited(err)


default_registry = ErrorRegistry()
default_inhibit_set = StackInhibitSet()


def register_error_log_func(handler: ErrLogFunc, *identities: Any) -> None:
    """Register *handler* in the process-wide registry."""
    default_registry.register(handler, *identities)


def inhibit_stacktrace_for_error(*identities: Any) -> None:
    """Skip stack capture in ``trace`` for these error instances/classes.

    Example::

        inhibit_stacktrace_for_error(ErrNotFound, pydantic.ValidationError)
    """
    default_inhibit_set.inhibit(*identities)
