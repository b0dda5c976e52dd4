"""Canonical log field names used by the access logger and error enrichment.

Downstream log consumers key on these names, so they must stay stable
across a deployment.
"""

from typing import Any, Callable

Fields = dict[str, Any]

# Signature of a function that adds log fields for a specific error.
ErrLogFunc = Callable[[BaseException, Fields], None]

# Error fields
ERROR_MESSAGE = "error_message"
ERROR_STACK = "error_stack"
ERROR_TYPE = "error_type"

# Access fields
LATENCY_MS = "latency_ms"
STATUS = "status"
REQUEST_ID = "request_id"
REMOTE_ADDR = "remote_addr"
HOST = "host"
METHOD = "method"
URI = "uri"
ROUTER_PATH = "router_path"

# Fields set by the default error log functions
HTTP_STATUS = "http-status"
HTTP_MESSAGE = "http-message"
JWT_ERROR = "jwt-error"
JWT_TEXT = "jwt-text"
JWT_CLAIM = "jwt-claim"
VALIDATION_ERRORS = "validation-errors"
VALIDATION_FIELDS = "validation-fields"

# Keys with this prefix are directives and never end up in a log record.
PRIVATE_PREFIX = "_"
MESSAGE_OVERRIDE = "_msg"
DEFAULT_ACCESS_MESSAGE = "access"


def type_name(obj: Any) -> str:
    """Return ``module.QualName`` for the type of *obj* (no module for builtins)."""
    cls = obj if isinstance(obj, type) else type(obj)
    module = cls.__module__
    if module in (None, "builtins"):
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"
