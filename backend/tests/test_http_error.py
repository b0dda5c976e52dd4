"""Tests for HTTPError, new_http_error and get_inner_http_error."""

import json
import sys
from pathlib import Path

import pytest

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from errorlog.http_error import HTTPError, get_inner_http_error, new_http_error  # noqa: E402
from errorlog.stacktrace import trace  # noqa: E402

ErrExpiredToken = new_http_error(None, 400, "expired token")
ErrTest = ValueError("generic error")


def wrap(err: BaseException, msg: str) -> RuntimeError:
    wrapped = RuntimeError(msg)
    wrapped.__cause__ = err
    return wrapped


class TestNewHTTPError:
    """Tests for new_http_error combined with get_inner_http_error."""

    @pytest.mark.parametrize(
        "err, code, msg, want_code, want_msg, want_inner_code, want_inner_msg",
        [
            pytest.param(
                None, 500, None, 500, "Internal Server Error", 500, "Internal Server Error",
                id="only_status_code",
            ),
            pytest.param(
                None, 500, "some message", 500, "some message", 500, "some message",
                id="status_code_and_message",
            ),
            pytest.param(
                ErrTest, 500, "some message", 500, "some message", 500, "some message",
                id="generic_error",
            ),
            pytest.param(
                ErrExpiredToken, 500, "some message", 500, "some message", 400, "expired token",
                id="http_error",
            ),
            pytest.param(
                wrap(trace(ErrExpiredToken), "wrapped error message"),
                500, "some message", 500, "some message", 400, "expired token",
                id="wrapped_http_error",
            ),
        ],
    )
    def test_new_http_error(
        self, err, code, msg, want_code, want_msg, want_inner_code, want_inner_msg
    ):
        got = new_http_error(err, code, msg) if msg else new_http_error(err, code)

        assert isinstance(got, HTTPError)
        assert got.code == want_code
        assert got.message == want_msg
        assert got.internal is err

        inner = get_inner_http_error(got)
        assert inner.code == want_inner_code
        assert inner.message == want_inner_msg


class TestHTTPError:
    """Tests for HTTPError itself."""

    def test_default_message_is_reason_phrase(self):
        assert HTTPError(404).message == "Not Found"

    def test_unknown_status_code(self):
        assert HTTPError(599).message == ""

    def test_internal_is_cause(self):
        inner = ValueError("db down")
        err = HTTPError(503, internal=inner)
        assert err.__cause__ is inner

    def test_str(self):
        assert str(HTTPError(403, "Nope")) == "code=403, message=Nope"

    def test_str_with_internal(self):
        err = HTTPError(500, "User error", internal=ValueError("db down"))
        assert str(err) == "code=500, message=User error, internal=db down"

    def test_string_message_response(self):
        response = HTTPError(403, "Nope").to_response()
        assert response.status_code == 403
        assert json.loads(response.body) == {"message": "Nope"}

    def test_structured_message_response(self):
        payload = {"error_code": 42, "error_message": "common.error.some_message"}
        response = HTTPError(404, payload).to_response()
        assert response.status_code == 404
        assert json.loads(response.body) == payload


class TestGetInnerHTTPError:
    """Tests for get_inner_http_error."""

    def test_none(self):
        assert get_inner_http_error(None) is None

    def test_no_http_error(self):
        assert get_inner_http_error(wrap(ValueError("x"), "outer")) is None

    def test_returns_innermost(self):
        inner = HTTPError(404, "expired token")
        outer = HTTPError(500, internal=wrap(inner, "context"))
        assert get_inner_http_error(outer) is inner

    def test_single_http_error(self):
        err = HTTPError(401)
        assert get_inner_http_error(err) is err

    def test_handled_http_error_is_not_inner(self):
        try:
            try:
                raise HTTPError(404, "user not found")
            except HTTPError:
                raise HTTPError(500)
        except HTTPError as err:
            assert get_inner_http_error(err) is err

    def test_error_raised_while_handling_http_error(self):
        try:
            try:
                raise HTTPError(404, "user not found")
            except HTTPError:
                {}["fallback"]
        except KeyError as err:
            assert isinstance(err.__context__, HTTPError)
            assert get_inner_http_error(err) is None

    def test_explicit_cause_is_followed(self):
        inner = HTTPError(404, "user not found")
        try:
            raise RuntimeError("lookup failed") from inner
        except RuntimeError as err:
            assert get_inner_http_error(err) is inner
