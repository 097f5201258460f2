"""Login flow — username/password guard → emailed OTP → authenticated session."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from otp_login.auth.errors import (
    AuthorizationError,
    DeliveryError,
    ExpiredError,
    MismatchError,
    NotFoundError,
)
from otp_login.auth.session_state import Phase, SessionState
from otp_login.auth.validation import mask_email, validate_code, validate_credentials
from otp_login.otp.base import BaseOTPRegistry, ConsumeOutcome
from otp_login.services.notifier import BaseNotifier

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Value object returned after a successful transition."""

    phase: Phase
    message: str


class LoginFlow:
    """Drives one session through the two-factor login.

    Flow
    ----
    1. ``submit_credentials`` checks the username/password format, issues
       a code in the registry and emails it to the notification address.
    2. ``submit_code`` consumes the session's pending attempt; a valid code
       authenticates the session.
    3. ``logout`` returns the session to anonymous.

    Failures raise an :class:`~otp_login.auth.errors.AuthError` subclass
    after the session state has been updated accordingly.  Callers are
    responsible for serialising calls on the same ``SessionState``.
    """

    def __init__(
        self,
        registry: BaseOTPRegistry,
        notifier: BaseNotifier,
        notify_address: str,
        notify_timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._notifier = notifier
        self._notify_address = notify_address
        self._notify_timeout = notify_timeout
        self._clock = clock

    @staticmethod
    def current_phase(state: SessionState) -> Phase:
        return state.phase

    @staticmethod
    def require_authenticated(state: SessionState) -> str:
        """Return the signed-in username or raise ``AuthorizationError``."""
        if not state.is_authenticated or state.authenticated_username is None:
            raise AuthorizationError("Please log in to continue")
        return state.authenticated_username

    async def submit_credentials(
        self, state: SessionState, username: str, password: str
    ) -> LoginResult:
        """Start a second-factor attempt for *username*."""
        if state.is_authenticated:
            return LoginResult(
                phase=state.phase,
                message=f"You are already signed in as {state.authenticated_username}.",
            )

        validate_credentials(username, password)

        record = self._registry.issue(username)
        state.begin_pending(username, record.attempt_key)

        if not await self._deliver(record.code):
            state.reset()
            logger.error("Failed to send OTP for user %s", username)
            raise DeliveryError("Failed to send OTP. Please try again.")

        logger.info("OTP generated for user: %s", username)
        return LoginResult(
            phase=state.phase,
            message=(
                f"A verification code has been sent to {mask_email(self._notify_address)}. "
                "Please enter the 4-digit OTP to complete login."
            ),
        )

    async def submit_code(self, state: SessionState, code: str) -> LoginResult:
        """Verify *code* against the session's pending attempt."""
        if not state.is_pending or state.pending_attempt_key is None:
            raise AuthorizationError("No login in progress. Please log in first.")

        code = validate_code(code)
        outcome = self._registry.consume(state.pending_attempt_key, code)

        if outcome is ConsumeOutcome.VALID:
            login_time = datetime.fromtimestamp(self._clock(), UTC)
            username = state.authenticate(login_time)
            logger.info("User authenticated successfully: %s", username)
            return LoginResult(phase=state.phase, message=f"Welcome, {username}!")

        if outcome is ConsumeOutcome.MISMATCH:
            logger.info("Invalid OTP for user %s", state.pending_username)
            raise MismatchError("Invalid OTP. Please try again.")

        username = state.pending_username
        state.reset()
        if outcome is ConsumeOutcome.EXPIRED:
            logger.info("OTP expired for user %s", username)
            raise ExpiredError("OTP has expired. Please login again.")
        logger.info("OTP not found for user %s", username)
        raise NotFoundError("OTP not found or expired. Please login again.")

    @staticmethod
    def logout(state: SessionState) -> str | None:
        """Return the session to anonymous; returns who was signed in."""
        username = state.authenticated_username
        state.reset()
        if username:
            logger.info("User logged out: %s", username)
        return username

    # ── Private helpers ──────────────────────────────────

    async def _deliver(self, code: str) -> bool:
        try:
            return await asyncio.wait_for(
                self._notifier.notify(self._notify_address, code),
                timeout=self._notify_timeout,
            )
        except TimeoutError:
            logger.error(
                "OTP delivery to %s timed out after %.1fs",
                self._notify_address,
                self._notify_timeout,
            )
            return False
        except Exception:
            logger.exception("OTP delivery to %s failed", self._notify_address)
            return False
