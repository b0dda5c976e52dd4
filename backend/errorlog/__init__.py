"""Error enrichment for access logging.

Walks exception chains to turn errors into structured log fields, with
opt-in stack capture and HTTP boundary errors.
"""

from errorlog.context import add_context_fields, get_context_fields
from errorlog.entry import LogEntry, new_entry
from errorlog.fields import ErrLogFunc, Fields, type_name
from errorlog.handlers import default_error_logger, init_default_error_logging
from errorlog.http_error import HTTPError, get_inner_http_error, new_http_error
from errorlog.registry import (
    ErrorRegistry,
    StackInhibitSet,
    default_inhibit_set,
    default_registry,
    inhibit_stacktrace_for_error,
    register_error_log_func,
)
from errorlog.stacktrace import (
    TracedError,
    get_traced_error,
    set_log_call_stack_directly,
    trace,
)
from errorlog.unwrap import (
    cause_of,
    iter_chain,
    root_cause,
    set_max_chain_depth,
    unwrap_error,
)

__all__ = [
    # Types
    "ErrLogFunc",
    "Fields",
    "type_name",
    # Registries
    "ErrorRegistry",
    "StackInhibitSet",
    "default_registry",
    "default_inhibit_set",
    "register_error_log_func",
    "inhibit_stacktrace_for_error",
    # Chain walking
    "cause_of",
    "iter_chain",
    "root_cause",
    "set_max_chain_depth",
    "unwrap_error",
    # Stack capture
    "TracedError",
    "trace",
    "get_traced_error",
    "set_log_call_stack_directly",
    # HTTP errors
    "HTTPError",
    "new_http_error",
    "get_inner_http_error",
    # Default handlers
    "default_error_logger",
    "init_default_error_logging",
    # Log entries
    "LogEntry",
    "new_entry",
    "add_context_fields",
    "get_context_fields",
]
