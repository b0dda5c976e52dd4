"""Default error log functions for common third-party error types."""

from typing import Optional

import jwt
import pydantic
from starlette.exceptions import HTTPException

from errorlog.fields import (
    HTTP_MESSAGE,
    HTTP_STATUS,
    JWT_CLAIM,
    JWT_ERROR,
    JWT_TEXT,
    VALIDATION_ERRORS,
    VALIDATION_FIELDS,
    Fields,
    type_name,
)
from errorlog.http_error import HTTPError
from errorlog.registry import ErrorRegistry, default_registry


def _validation_locations(err: pydantic.ValidationError) -> str:
    return ",".join(
        ".".join(str(part) for part in detail.get("loc", ())) for detail in err.errors()
    )


def default_error_logger(err: BaseException, fields: Fields) -> None:
    if isinstance(err, HTTPError):
        fields[HTTP_MESSAGE] = err.message
        fields[HTTP_STATUS] = err.code

    elif isinstance(err, HTTPException):
        fields[HTTP_MESSAGE] = err.detail
        fields[HTTP_STATUS] = err.status_code

    elif isinstance(err, jwt.InvalidTokenError):
        fields[JWT_ERROR] = type(err).__name__
        text = str(err)
        if text:
            fields[JWT_TEXT] = text
        if isinstance(err, jwt.MissingRequiredClaimError):
            fields[JWT_CLAIM] = err.claim

    elif isinstance(err, pydantic.ValidationError):
        fields[VALIDATION_ERRORS] = err.error_count()
        fields[VALIDATION_FIELDS] = _validation_locations(err)

    else:
        fields["errorlogger"] = (
            f"errorlog.default_error_logger: don't know how to handle {type_name(err)} error type"
        )


def init_default_error_logging(registry: Optional[ErrorRegistry] = None) -> None:
    """Register ``default_error_logger`` for HTTP, JWT and validation errors."""
    if registry is None:
        registry = default_registry
    registry.register(
        default_error_logger,
        HTTPError,
        HTTPException,
        jwt.InvalidTokenError,
        pydantic.ValidationError,
    )
