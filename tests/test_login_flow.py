"""Tests for the LoginFlow — verifies the full two-factor state machine."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest
from conftest import fixed_codes

from otp_login.auth.errors import (
    AuthorizationError,
    DeliveryError,
    ExpiredError,
    MismatchError,
    NotFoundError,
    ValidationError,
)
from otp_login.auth.login_flow import LoginFlow
from otp_login.auth.session_state import Phase, SessionState
from otp_login.otp.registry import InMemoryOTPRegistry

NOTIFY_ADDRESS = "inbox@example.com"


def make_flow(clock, notifier, codes=("1234",), timeout=1.0):
    registry = InMemoryOTPRegistry(clock=clock, code_generator=fixed_codes(codes))
    flow = LoginFlow(
        registry,
        notifier,
        notify_address=NOTIFY_ADDRESS,
        notify_timeout=timeout,
        clock=clock,
    )
    return flow, registry


# ──────────────────────────────────────────────────────────
# Credentials
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_valid_credentials_enter_pending(clock, notifier):
    flow, registry = make_flow(clock, notifier, codes=["4821"])
    state = SessionState()

    result = await flow.submit_credentials(state, "testuser", "1234")

    assert result.phase is Phase.PENDING_SECOND_FACTOR
    assert state.phase is Phase.PENDING_SECOND_FACTOR
    assert state.pending_username == "testuser"
    assert len(registry) == 1
    record = registry.lookup(state.pending_attempt_key)
    assert record is not None and record.code == "4821"
    notifier.notify.assert_awaited_once_with(NOTIFY_ADDRESS, "4821")
    assert "i***x@example.com" in result.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username, password",
    [("aaaaaaaaaaaaaaaaaaaa", "1234"), ("testuser", "12a4"), ("", "")],
)
async def test_invalid_credentials_stay_anonymous(clock, notifier, username, password):
    flow, registry = make_flow(clock, notifier)
    state = SessionState()

    with pytest.raises(ValidationError):
        await flow.submit_credentials(state, username, password)

    assert state.phase is Phase.ANONYMOUS
    assert len(registry) == 0
    notifier.notify.assert_not_called()


@pytest.mark.asyncio
async def test_delivery_failure_returns_to_anonymous(clock, notifier):
    notifier.notify.return_value = False
    flow, _ = make_flow(clock, notifier)
    state = SessionState()

    with pytest.raises(DeliveryError):
        await flow.submit_credentials(state, "testuser", "1234")

    assert state.phase is Phase.ANONYMOUS
    assert state.pending_attempt_key is None
    assert state.pending_username is None


@pytest.mark.asyncio
async def test_delivery_timeout_is_delivery_failure(clock, notifier):
    async def hang(address, code):
        await asyncio.sleep(5)
        return True

    notifier.notify.side_effect = hang
    flow, _ = make_flow(clock, notifier, timeout=0.05)
    state = SessionState()

    with pytest.raises(DeliveryError):
        await flow.submit_credentials(state, "testuser", "1234")

    assert state.phase is Phase.ANONYMOUS


@pytest.mark.asyncio
async def test_notifier_exception_is_delivery_failure(clock, notifier):
    notifier.notify.side_effect = RuntimeError("transport blew up")
    flow, _ = make_flow(clock, notifier)
    state = SessionState()

    with pytest.raises(DeliveryError):
        await flow.submit_credentials(state, "testuser", "1234")

    assert state.phase is Phase.ANONYMOUS
    assert state.pending_attempt_key is None
    assert state.pending_username is None


@pytest.mark.asyncio
async def test_resubmitting_credentials_replaces_pending_attempt(clock, notifier):
    flow, registry = make_flow(clock, notifier, codes=["1111", "2222"])
    state = SessionState()

    await flow.submit_credentials(state, "testuser", "1234")
    first_key = state.pending_attempt_key
    await flow.submit_credentials(state, "testuser", "1234")

    assert state.pending_attempt_key != first_key
    # The superseded record stays until it expires or is swept
    assert registry.lookup(first_key) is not None
    assert len(registry) == 2

    with pytest.raises(MismatchError):
        await flow.submit_code(state, "1111")


@pytest.mark.asyncio
async def test_credentials_while_authenticated_is_noop(clock, notifier):
    flow, registry = make_flow(clock, notifier, codes=["1111"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")
    await flow.submit_code(state, "1111")

    result = await flow.submit_credentials(state, "someone", "9999")

    assert "already signed in" in result.message
    assert state.authenticated_username == "testuser"
    assert len(registry) == 0
    assert notifier.notify.await_count == 1


# ──────────────────────────────────────────────────────────
# Second factor
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_valid_code_authenticates(clock, notifier):
    flow, registry = make_flow(clock, notifier, codes=["7421"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")

    clock.advance(59)
    result = await flow.submit_code(state, "7421")

    assert result.phase is Phase.AUTHENTICATED
    assert state.authenticated_username == "testuser"
    assert state.login_timestamp == datetime.fromtimestamp(clock.now, UTC)
    assert state.pending_username is None
    assert state.pending_attempt_key is None
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_expired_code_resets_session(clock, notifier):
    flow, _ = make_flow(clock, notifier, codes=["7421"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")

    clock.advance(61)
    with pytest.raises(ExpiredError) as excinfo:
        await flow.submit_code(state, "7421")

    assert not isinstance(excinfo.value, NotFoundError)
    assert state.phase is Phase.ANONYMOUS
    assert state.pending_attempt_key is None


@pytest.mark.asyncio
async def test_mismatch_then_retry(clock, notifier):
    flow, _ = make_flow(clock, notifier, codes=["1111"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")

    with pytest.raises(MismatchError):
        await flow.submit_code(state, "2222")
    assert state.phase is Phase.PENDING_SECOND_FACTOR

    clock.advance(10)
    result = await flow.submit_code(state, "1111")
    assert result.phase is Phase.AUTHENTICATED


@pytest.mark.asyncio
async def test_missing_record_is_treated_as_expired(clock, notifier):
    flow, registry = make_flow(clock, notifier, codes=["1111"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")
    clock.advance(61)
    registry.sweep()

    with pytest.raises(ExpiredError) as excinfo:
        await flow.submit_code(state, "1111")

    assert isinstance(excinfo.value, NotFoundError)
    assert state.phase is Phase.ANONYMOUS


@pytest.mark.asyncio
async def test_malformed_code_keeps_attempt(clock, notifier):
    flow, registry = make_flow(clock, notifier, codes=["1111"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")

    with pytest.raises(ValidationError):
        await flow.submit_code(state, "11a1")

    assert state.phase is Phase.PENDING_SECOND_FACTOR
    assert registry.lookup(state.pending_attempt_key) is not None


@pytest.mark.asyncio
async def test_code_without_pending_login_is_unauthorized(clock, notifier):
    flow, _ = make_flow(clock, notifier)
    state = SessionState()

    with pytest.raises(AuthorizationError):
        await flow.submit_code(state, "1234")
    assert state.phase is Phase.ANONYMOUS


# ──────────────────────────────────────────────────────────
# Access control and logout
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_require_authenticated(clock, notifier):
    flow, _ = make_flow(clock, notifier, codes=["1111"])
    state = SessionState()

    with pytest.raises(AuthorizationError):
        flow.require_authenticated(state)

    await flow.submit_credentials(state, "testuser", "1234")
    with pytest.raises(AuthorizationError):
        flow.require_authenticated(state)

    await flow.submit_code(state, "1111")
    assert flow.require_authenticated(state) == "testuser"
    assert flow.current_phase(state) is Phase.AUTHENTICATED


@pytest.mark.asyncio
async def test_logout_is_idempotent(clock, notifier):
    flow, _ = make_flow(clock, notifier, codes=["1111"])
    state = SessionState()
    await flow.submit_credentials(state, "testuser", "1234")
    await flow.submit_code(state, "1111")

    assert flow.logout(state) == "testuser"
    assert state.phase is Phase.ANONYMOUS
    assert state.authenticated_username is None
    assert state.login_timestamp is None

    assert flow.logout(state) is None
    assert state.phase is Phase.ANONYMOUS


def test_authenticate_requires_pending_state():
    state = SessionState()
    with pytest.raises(RuntimeError):
        state.authenticate(datetime.now(UTC))
