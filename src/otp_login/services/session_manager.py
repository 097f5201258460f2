"""Session manager — tracks per-client login state."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from otp_login.auth.session_state import Phase, SessionState

logger = logging.getLogger(__name__)

DEFAULT_IDLE_SECONDS = 30 * 60


@dataclass
class Session:
    """Represents the login state for one client."""

    session_id: str
    created_at: float
    last_activity: float
    state: SessionState = field(default_factory=SessionState)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class SessionManager:
    """In-memory session store keyed by an opaque cookie token.

    Sessions idle for longer than ``idle_seconds`` are dropped on the next
    access or by :meth:`purge_idle`.  For multi-process deployments, swap
    to a shared implementation by sub-classing and overriding
    :pymethod:`session` / :pymethod:`peek`.
    """

    def __init__(
        self,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._idle_seconds = idle_seconds
        self._clock = clock

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(32)

    def _is_idle(self, session: Session, now: float) -> bool:
        return now - session.last_activity > self._idle_seconds

    def _get_or_create(self, session_id: str | None) -> Session:
        now = self._clock()
        session = self._sessions.get(session_id) if session_id else None
        if session is not None and self._is_idle(session, now):
            logger.info("Session %s expired after inactivity", session.session_id[:8])
            del self._sessions[session.session_id]
            session = None
        if session is None:
            # Unknown ids are never adopted; the client gets a fresh one.
            # Stored only once it leaves the anonymous phase.
            session = Session(session_id=self.new_session_id(), created_at=now, last_activity=now)
        session.last_activity = now
        return session

    @asynccontextmanager
    async def session(self, session_id: str | None) -> AsyncIterator[Session]:
        """Yield the session for *session_id* with its lock held.

        Transitions for the same session therefore run one at a time.  A
        missing, unknown or idle id yields a brand-new anonymous session;
        callers read ``session.session_id`` to learn which one they got.
        A new session is kept only if the block moves it out of the
        anonymous phase.
        """
        session = self._get_or_create(session_id)
        async with session.lock:
            try:
                yield session
            finally:
                session.last_activity = self._clock()
                if (
                    session.session_id not in self._sessions
                    and session.state.phase is not Phase.ANONYMOUS
                ):
                    self._sessions[session.session_id] = session
                    logger.info("Creating new session %s", session.session_id[:8])

    def peek(self, session_id: str | None) -> SessionState | None:
        """Return the state for a live session without creating one."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None or self._is_idle(session, self._clock()):
            return None
        return session.state

    def clear(self, session_id: str) -> None:
        """Remove a session (e.g. on logout)."""
        self._sessions.pop(session_id, None)
        logger.info("Session cleared for %s", session_id[:8])

    def purge_idle(self) -> int:
        """Drop every idle session that is not mid-transition."""
        now = self._clock()
        idle = [
            sid
            for sid, s in self._sessions.items()
            if self._is_idle(s, now) and not s.lock.locked()
        ]
        for sid in idle:
            del self._sessions[sid]
        if idle:
            logger.info("Purged %d idle session(s)", len(idle))
        return len(idle)

    @property
    def active_count(self) -> int:
        """Number of active sessions (useful for monitoring)."""
        return len(self._sessions)
