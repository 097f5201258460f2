"""Per-client authentication state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Phase(str, Enum):
    ANONYMOUS = "anonymous"
    PENDING_SECOND_FACTOR = "pending_second_factor"
    AUTHENTICATED = "authenticated"


@dataclass
class SessionState:
    """Where one client stands in the two-factor login.

    Pending fields are set only in ``PENDING_SECOND_FACTOR`` and the
    authenticated fields only in ``AUTHENTICATED``.  Mutate through the
    transition methods below so the two never overlap.
    """

    phase: Phase = Phase.ANONYMOUS
    pending_username: str | None = None
    pending_attempt_key: str | None = None
    authenticated_username: str | None = None
    login_timestamp: datetime | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.phase is Phase.AUTHENTICATED

    @property
    def is_pending(self) -> bool:
        return self.phase is Phase.PENDING_SECOND_FACTOR

    def begin_pending(self, username: str, attempt_key: str) -> None:
        """Enter (or restart) the second-factor step for *username*."""
        self.reset()
        self.phase = Phase.PENDING_SECOND_FACTOR
        self.pending_username = username
        self.pending_attempt_key = attempt_key

    def authenticate(self, login_timestamp: datetime) -> str:
        """Promote the pending user to authenticated and return the username."""
        if not self.is_pending or self.pending_username is None:
            raise RuntimeError(f"cannot authenticate from phase {self.phase.value}")
        username = self.pending_username
        self.reset()
        self.phase = Phase.AUTHENTICATED
        self.authenticated_username = username
        self.login_timestamp = login_timestamp
        return username

    def reset(self) -> None:
        """Drop back to anonymous, clearing every other field."""
        self.phase = Phase.ANONYMOUS
        self.pending_username = None
        self.pending_attempt_key = None
        self.authenticated_username = None
        self.login_timestamp = None
