"""Errors raised by the login flow. All are recoverable by retrying a step."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for failures surfaced to the user by the login flow."""

    code = "auth_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    """Malformed username, password or code. Phase is unchanged."""

    code = "validation_error"


class DeliveryError(AuthError):
    """The code could not be delivered. The session is back to anonymous."""

    code = "delivery_error"


class ExpiredError(AuthError):
    """The code's window has closed. The user must log in again."""

    code = "expired"


class NotFoundError(ExpiredError):
    """No live code for the session's attempt key."""

    code = "not_found"


class MismatchError(AuthError):
    """Wrong code. The attempt stays open for another try."""

    code = "mismatch"


class AuthorizationError(AuthError):
    """The operation needs a phase the session is not in."""

    code = "unauthorized"
