"""Base OTP registry — abstract interface every code store must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class ConsumeOutcome(str, Enum):
    """Result of presenting a code against an attempt key."""

    VALID = "valid"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OTPRecord:
    """One outstanding code, bound to a single login attempt."""

    attempt_key: str
    code: str
    username: str
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class BaseOTPRegistry(ABC):
    """Abstract store of outstanding one-time codes.

    Implementations own their records exclusively: callers only ever hold
    an ``attempt_key``.  A missing key is a normal outcome, never an
    exception.  ``consume`` must be atomic with respect to its
    check-then-delete sequence, and ``sweep`` must be safe to run while
    other calls are in flight.
    """

    @abstractmethod
    def issue(self, username: str) -> OTPRecord:
        """Create and store a fresh code for *username*."""

    @abstractmethod
    def lookup(self, attempt_key: str) -> OTPRecord | None:
        """Return the record for *attempt_key* without modifying it."""

    @abstractmethod
    def consume(self, attempt_key: str, submitted_code: str) -> ConsumeOutcome:
        """Check *submitted_code* and retire the record when appropriate.

        Parameters
        ----------
        attempt_key:
            Key returned by :meth:`issue` for this login attempt.
        submitted_code:
            The code the user typed in.
        """

    @abstractmethod
    def sweep(self, now: float | None = None) -> int:
        """Delete every record that expired before *now*; return the count."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of records currently held."""
