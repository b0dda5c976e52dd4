"""Access logging middleware.

Writes one structured log record per request with request metadata,
latency, status and, when the endpoint raised, everything the error chain
can tell about the failure.

The request ID is read from ``X-Request-ID`` (if provided by a gateway or
the client) or generated, bound to ``structlog.contextvars`` so every log
line emitted during the request includes it, and returned in the
``X-Request-ID`` response header so clients can correlate logs.

Pure ASGI: ``BaseHTTPMiddleware`` re-raises endpoint exceptions after the
dispatch has already answered them.
"""

import time
import uuid
from typing import Any, Callable, Optional, Sequence

import structlog
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.routing import BaseRoute, Match
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from errorlog.context import add_context_fields, get_context_fields, set_context_fields
from errorlog.entry import ACCESS_LOGGER_NAME, LogEntry
from errorlog.fields import (
    DEFAULT_ACCESS_MESSAGE,
    ERROR_MESSAGE,
    HOST,
    LATENCY_MS,
    MESSAGE_OVERRIDE,
    METHOD,
    REMOTE_ADDR,
    REQUEST_ID,
    ROUTER_PATH,
    STATUS,
    URI,
    Fields,
)
from errorlog.http_error import HTTPError, get_inner_http_error

__all__ = [
    "REQUEST_ID_HEADER",
    "ContextLogFunc",
    "RequestLoggingMiddleware",
    "add_context_fields",
    "default_context_log_func",
    "get_context_fields",
    "route_template",
]

REQUEST_ID_HEADER = "X-Request-ID"

_REMOTE_ADDR_HEADERS = ("X-Forwarded-For", "X-Real-Ip", "X-Remote-Addr")

ContextLogFunc = Callable[[Request, Fields], None]


def _set_request_header(request: Request, name: str, value: str) -> None:
    """Set a header in the ASGI scope so downstream handlers see it."""
    key = name.lower().encode("latin-1")
    raw = [(k, v) for k, v in request.scope["headers"] if k != key]
    raw.append((key, value.encode("latin-1")))
    request.scope["headers"] = raw
    # Drop the cached Headers instance built from the old scope
    request.__dict__.pop("_headers", None)


def route_template(routes: Sequence[BaseRoute], scope: Scope) -> Optional[str]:
    """Return the path template of the route *scope* is dispatched to.

    Routes are matched the way Starlette's router does it (first full
    match, else first partial one) and mounted routers are descended into,
    so the result carries every mount/router prefix, e.g.
    ``/api/users/{user_id}``.
    """
    partial = None
    for route in routes:
        match, child_scope = route.matches(scope)
        if match == Match.FULL:
            return _join_template(route, {**scope, **child_scope})
        if match == Match.PARTIAL and partial is None:
            partial = (route, {**scope, **child_scope})
    if partial is not None:
        return _join_template(*partial)
    return None


def _join_template(route: BaseRoute, scope: Scope) -> Optional[str]:
    path = getattr(route, "path", "")
    sub_routes = getattr(route, "routes", None)
    if not sub_routes:
        # Plain routes, and mounts of apps without a routing table
        return path
    sub_path = route_template(sub_routes, scope)
    if sub_path is None:
        return None
    return path + sub_path


def default_context_log_func(request: Request, fields: Fields) -> None:
    """Collect host, request ID, remote address, method and URI."""
    host = request.headers.get("X-Host", "")
    if not host:
        forwarded_host = request.headers.get("X-Forwarded-Host", "")
        if forwarded_host:
            host = forwarded_host.split(":")[0]
            _set_request_header(request, "X-Host", host)

    request_id = request.headers.get(REQUEST_ID_HEADER, "")
    if not request_id:
        request_id = str(uuid.uuid4())
        _set_request_header(request, REQUEST_ID_HEADER, request_id)

    remote_addr = ""
    for header in _REMOTE_ADDR_HEADERS:
        remote_addr = request.headers.get(header, "")
        if remote_addr:
            break
    if not remote_addr:
        remote_addr = request.client.host if request.client else "unknown"

    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"

    fields[REQUEST_ID] = request_id
    fields[REMOTE_ADDR] = remote_addr
    fields[HOST] = host
    fields[METHOD] = request.method
    fields[URI] = uri


class RequestLoggingMiddleware:
    """Access and error logging for every HTTP request.

    If the endpoint raises before the response has started, the caller
    gets the response of the innermost ``HTTPError`` in the exception
    chain; without one, the exception is wrapped in a 500 ``HTTPError``.
    An exception raised after the response started is logged and
    re-raised, since the response can no longer be replaced.
    """

    def __init__(
        self,
        app: ASGIApp,
        context_log_funcs: Optional[Sequence[ContextLogFunc]] = None,
        logger: Any = None,
    ) -> None:
        self.app = app
        self._context_log_funcs = list(context_log_funcs or [default_context_log_func])
        self._logger = logger if logger is not None else structlog.get_logger(ACCESS_LOGGER_NAME)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        fields: Fields = {}
        for context_log_func in self._context_log_funcs:
            context_log_func(request, fields)
        set_context_fields(request, fields)

        request_id = fields.get(REQUEST_ID) or request.headers.get(REQUEST_ID_HEADER, "")
        request.state.request_id = request_id

        # Bind to structlog context for this request scope
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        status_code: Optional[int] = None

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                if request_id:
                    MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        error: Optional[BaseException] = None
        # Routing mutates the scope; keep the pre-dispatch view for route matching
        route_scope = dict(scope)
        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if status_code is not None:
                error = exc
                self._log(request, route_scope, fields, start, status_code, error)
                raise
            http_error = get_inner_http_error(exc)
            if http_error is None:
                http_error = HTTPError(500, internal=exc)
                error = http_error
            else:
                error = exc
            await http_error.to_response()(scope, receive, send_wrapper)

        self._log(request, route_scope, fields, start, status_code, error)

    def _log(
        self,
        request: Request,
        route_scope: Scope,
        fields: Fields,
        start: float,
        status_code: Optional[int],
        error: Optional[BaseException],
    ) -> None:
        fields[LATENCY_MS] = int((time.perf_counter() - start) * 1000)
        fields[STATUS] = status_code
        routes = getattr(request.scope.get("app"), "routes", None) or []
        router_path = route_template(routes, route_scope)
        if router_path is None:
            router_path = getattr(request.scope.get("route"), "path", None)
        if router_path is not None:
            fields[ROUTER_PATH] = router_path

        entry = LogEntry(self._logger).with_fields(fields).with_error(error)
        msg = fields.get(MESSAGE_OVERRIDE, DEFAULT_ACCESS_MESSAGE)
        if ERROR_MESSAGE in entry.fields:
            entry.error(msg)
        else:
            entry.info(msg)

        structlog.contextvars.clear_contextvars()
