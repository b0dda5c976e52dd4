"""Per-request log fields stored on the Starlette request state."""

from typing import Optional

from starlette.requests import Request

from errorlog.fields import Fields

CONTEXT_FIELDS_NAME = "errorlog_context_fields"


def set_context_fields(request: Request, fields: Fields) -> None:
    setattr(request.state, CONTEXT_FIELDS_NAME, fields)


def get_context_fields(request: Optional[Request]) -> Optional[Fields]:
    """Return the field map set up by the request logging middleware."""
    if request is None:
        return None
    fields = getattr(request.state, CONTEXT_FIELDS_NAME, None)
    if not isinstance(fields, dict):
        return None
    return fields


def add_context_fields(request: Optional[Request], fields: Fields) -> None:
    """Add *fields* to the request's log context.

    They end up in the access log record written by the middleware when the
    endpoint returns, and in any ``LogEntry.with_request`` record. Keys with
    a ``_`` prefix are directives, e.g. ``{"_msg": "login"}`` replaces the
    access log message, and are never logged themselves.
    """
    context_fields = get_context_fields(request)
    if context_fields is None:
        return
    context_fields.update(fields)
