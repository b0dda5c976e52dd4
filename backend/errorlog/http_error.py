"""HTTP boundary error carrying the status and message sent to the caller.

An endpoint can raise a specific ``HTTPError`` deep down and have it
wrapped by more generic ones on the way up; the request logging
middleware answers with the innermost one, so the most specific
status/message reaches the caller while the whole chain is logged.

Example::

    ErrExpiredToken = HTTPError(400, "expired token")

    def err_user(err):
        # 500 "User error", unless err already carries an HTTPError
        return new_http_error(trace(err), 500, "User error")
"""

from http import HTTPStatus
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

from errorlog.unwrap import iter_chain


def _reason_phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


class HTTPError(Exception):
    """Error with an HTTP status code and a message for the caller.

    Attributes:
        code: HTTP status code.
        message: String or any JSON-encodable payload returned to the caller.
        internal: Wrapped error that caused this one, if any.
    """

    def __init__(
        self,
        code: int,
        message: Any = None,
        internal: Optional[BaseException] = None,
    ) -> None:
        if message is None:
            message = _reason_phrase(code)
        super().__init__(code, message)
        self.code = code
        self.message = message
        self.internal = internal
        if internal is not None:
            self.__cause__ = internal

    def __str__(self) -> str:
        if self.internal is None:
            return f"code={self.code}, message={self.message}"
        return f"code={self.code}, message={self.message}, internal={self.internal}"

    def to_response(self) -> JSONResponse:
        if isinstance(self.message, str):
            content: Any = {"message": self.message}
        else:
            content = jsonable_encoder(self.message)
        return JSONResponse(status_code=self.code, content=content)


def new_http_error(err: Optional[BaseException], code: int, *msg: Any) -> HTTPError:
    """Create an ``HTTPError`` for *code* that wraps *err*.

    The first positional *msg* becomes the message; without one the
    standard reason phrase is used.
    """
    message = msg[0] if msg else None
    return HTTPError(code, message, internal=err)


def get_inner_http_error(err: Optional[BaseException]) -> Optional[HTTPError]:
    """Return the innermost ``HTTPError`` explicitly wrapped by *err*, if any.

    Only ``internal``/``__cause__``/``unwrap()`` links are followed; an
    ``HTTPError`` that was merely being handled when *err* was raised does
    not decide the response.
    """
    inner = None
    for node in iter_chain(err):
        if isinstance(node, HTTPError):
            inner = node
    return inner
