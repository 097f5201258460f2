"""Maps login flow errors onto HTTP responses."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response

from otp_login.auth.errors import (
    AuthError,
    AuthorizationError,
    DeliveryError,
    ExpiredError,
    MismatchError,
    ValidationError,
)
from otp_login.web.schemas import ErrorResponse

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"

_STATUS_CODES: dict[type[AuthError], int] = {
    ValidationError: 422,
    DeliveryError: 502,
    MismatchError: 401,
    ExpiredError: 410,
}


def status_for(exc: AuthError) -> int:
    """HTTP status for *exc*, walking up its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 400


async def auth_error_handler(request: Request, exc: AuthError) -> Response:
    """Render an ``AuthError`` raised by any route."""
    if isinstance(exc, AuthorizationError):
        logger.debug("Redirecting %s to %s: %s", request.url.path, LOGIN_PATH, exc.message)
        return RedirectResponse(LOGIN_PATH, status_code=303)

    body = ErrorResponse(error=exc.code, message=exc.message)
    return JSONResponse(status_code=status_for(exc), content=body.model_dump())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """Render malformed request bodies in the same shape as ``ValidationError``."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "")
    else:
        message = "Invalid request"
    body = ErrorResponse(error=ValidationError.code, message=message)
    return JSONResponse(status_code=422, content=body.model_dump())
