"""Shared fixtures — pinned clock and predictable codes."""

from __future__ import annotations

from collections.abc import Iterable
from unittest.mock import AsyncMock

import pytest

from otp_login.otp.registry import InMemoryOTPRegistry
from otp_login.services.notifier import BaseNotifier

T0 = 1_700_000_000.0


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = T0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def fixed_codes(codes: Iterable[str]):
    """Code generator that hands out *codes* in order."""
    it = iter(codes)
    return lambda: next(it)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> InMemoryOTPRegistry:
    return InMemoryOTPRegistry(clock=clock)


@pytest.fixture
def notifier():
    """Mocked notifier — never actually sends anything."""
    mock = AsyncMock(spec=BaseNotifier)
    mock.notify.return_value = True
    return mock
