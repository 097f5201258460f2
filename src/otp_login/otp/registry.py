"""In-memory OTP registry with expiry and single-use consumption."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from collections.abc import Callable

from otp_login.otp.base import BaseOTPRegistry, ConsumeOutcome, OTPRecord

logger = logging.getLogger(__name__)

# OTP validity period in seconds
OTP_TTL_SECONDS = 60


def generate_code() -> str:
    """Return a 4-digit code in 1000–9999.

    Uses the module-level ``random`` generator, which is not suitable for
    secrets.  Pass a different ``code_generator`` to the registry to change
    that.
    """
    return str(random.randint(1000, 9999))


def new_attempt_key() -> str:
    return uuid.uuid4().hex


class InMemoryOTPRegistry(BaseOTPRegistry):
    """Thread-safe in-memory OTP registry.

    Each entry maps ``attempt_key → OTPRecord``.  Expired entries are
    removed when a consume detects them, or in bulk by :meth:`sweep`.
    """

    def __init__(
        self,
        ttl_seconds: float = OTP_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        code_generator: Callable[[], str] = generate_code,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._generate_code = code_generator
        self._records: dict[str, OTPRecord] = {}
        self._lock = threading.Lock()

    def issue(self, username: str) -> OTPRecord:
        """Generate and store a code for *username* under a new attempt key."""
        code = self._generate_code()
        now = self._clock()
        with self._lock:
            key = new_attempt_key()
            while key in self._records:
                key = new_attempt_key()
            record = OTPRecord(
                attempt_key=key,
                code=code,
                username=username,
                created_at=now,
                expires_at=now + self._ttl,
            )
            self._records[key] = record
        logger.info("OTP issued for %s (attempt %s)", username, key[:8])
        logger.debug("OTP for attempt %s: %s", key[:8], code)
        return record

    def lookup(self, attempt_key: str) -> OTPRecord | None:
        with self._lock:
            return self._records.get(attempt_key)

    def consume(self, attempt_key: str, submitted_code: str) -> ConsumeOutcome:
        """Verify *submitted_code*; delete the record on success or expiry."""
        now = self._clock()
        with self._lock:
            record = self._records.get(attempt_key)
            if record is None:
                outcome = ConsumeOutcome.NOT_FOUND
            elif record.is_expired(now):
                del self._records[attempt_key]
                outcome = ConsumeOutcome.EXPIRED
            elif submitted_code != record.code:
                # Kept so the user can retry within the window
                outcome = ConsumeOutcome.MISMATCH
            else:
                del self._records[attempt_key]
                outcome = ConsumeOutcome.VALID
        logger.info("OTP consume for attempt %s: %s", attempt_key[:8], outcome.value)
        return outcome

    def sweep(self, now: float | None = None) -> int:
        """Remove records whose window closed before *now*."""
        if now is None:
            now = self._clock()
        with self._lock:
            stale = [k for k, r in self._records.items() if r.expires_at < now]
            for key in stale:
                del self._records[key]
        if stale:
            logger.info("Swept %d expired OTP(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
