"""Periodic cleanup of expired codes and idle sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from otp_login.otp.base import BaseOTPRegistry

if TYPE_CHECKING:
    from otp_login.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class OTPSweeper:
    """Runs ``registry.sweep()`` on a fixed interval in a background task.

    The task is independent of request handling; the registry's own lock
    keeps it consistent with concurrent ``issue``/``consume`` calls.
    """

    def __init__(
        self,
        registry: BaseOTPRegistry,
        interval_seconds: float = 60.0,
        session_manager: SessionManager | None = None,
    ) -> None:
        self._registry = registry
        self._interval = interval_seconds
        self._session_manager = session_manager
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="otp-sweeper")
        logger.info("OTP sweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("OTP sweeper stopped")

    def tick(self) -> int:
        """Run one cleanup pass; returns the number of codes removed."""
        removed = self._registry.sweep()
        if self._session_manager is not None:
            self._session_manager.purge_idle()
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.tick()
            except Exception:
                logger.exception("OTP sweep failed")
