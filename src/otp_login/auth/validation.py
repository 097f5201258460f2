"""Input guards and formatting helpers shared by the login flow."""

from __future__ import annotations

import re

from otp_login.auth.errors import ValidationError

MAX_USERNAME_LENGTH = 20

_FOUR_DIGITS = re.compile(r"[0-9]{4}")


def validate_credentials(username: str, password: str) -> None:
    """Raise ``ValidationError`` unless the pair passes the format guard.

    The username must be non-empty and shorter than 20 characters; the
    password must be exactly four digits.
    """
    if not username or not password:
        raise ValidationError("Username and password are required")
    if len(username) >= MAX_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be less than {MAX_USERNAME_LENGTH} characters"
        )
    if not _FOUR_DIGITS.fullmatch(password):
        raise ValidationError("Password must be exactly 4 digits")


def validate_code(code: str) -> str:
    """Return the stripped code, or raise if it is not four digits."""
    code = (code or "").strip()
    if not _FOUR_DIGITS.fullmatch(code):
        raise ValidationError("The code must be exactly 4 digits")
    return code


def mask_email(email: str) -> str:
    """Mask an email for privacy: ``j***n@example.com``."""
    if "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    if not local:
        masked_local = "***"
    elif len(local) <= 2:
        masked_local = local[0] + "***"
    else:
        masked_local = local[0] + "***" + local[-1]
    return f"{masked_local}@{domain}"
