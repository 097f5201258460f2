"""HTTP routes for the two-factor login flow.

Endpoints
---------
GET  /               → redirect to /dashboard or /login
GET  /login          → current phase (redirects when already signed in)
POST /login          → submit username + password, emails a code
GET  /verify-otp     → current phase (redirects when no login is pending)
POST /verify-otp     → submit the emailed code
POST /logout         → end the session
GET  /session        → current phase and username
GET  /dashboard      → protected resource
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse

from otp_login.auth.login_flow import LoginFlow
from otp_login.auth.session_state import Phase
from otp_login.config import Settings
from otp_login.services.session_manager import SessionManager
from otp_login.web.deps import (
    get_login_flow,
    get_session_id,
    get_session_manager,
    get_settings,
)
from otp_login.web.errors import LOGIN_PATH
from otp_login.web.schemas import (
    DashboardResponse,
    LoginRequest,
    LoginResponse,
    SessionInfo,
    VerifyOTPRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["login"])

DASHBOARD_PATH = "/dashboard"


def _set_session_cookie(response: Response, session_id: str, config: Settings) -> None:
    response.set_cookie(
        config.session_cookie_name,
        session_id,
        max_age=config.session_idle_minutes * 60,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
    )


def _phase_of(manager: SessionManager, session_id: str | None) -> Phase:
    state = manager.peek(session_id)
    return state.phase if state is not None else Phase.ANONYMOUS


# ── Entry points ─────────────────────────────────────────

@router.get("/")
async def home(
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
) -> RedirectResponse:
    """Send signed-in users to the dashboard, everyone else to login."""
    if _phase_of(manager, session_id) is Phase.AUTHENTICATED:
        return RedirectResponse(DASHBOARD_PATH, status_code=303)
    return RedirectResponse(LOGIN_PATH, status_code=303)


@router.get("/login", response_model=SessionInfo)
async def login_page(
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
):
    phase = _phase_of(manager, session_id)
    if phase is Phase.AUTHENTICATED:
        return RedirectResponse(DASHBOARD_PATH, status_code=303)
    return SessionInfo(phase=phase)


@router.get("/verify-otp", response_model=SessionInfo)
async def verify_page(
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
):
    state = manager.peek(session_id)
    if state is None or not state.is_pending:
        return RedirectResponse(LOGIN_PATH, status_code=303)
    return SessionInfo(phase=state.phase, username=state.pending_username)


# ── Transitions ──────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
async def submit_credentials(
    body: LoginRequest,
    response: Response,
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
    flow: LoginFlow = Depends(get_login_flow),
    config: Settings = Depends(get_settings),
) -> LoginResponse:
    """Check the credentials and email a one-time code."""
    async with manager.session(session_id) as session:
        result = await flow.submit_credentials(session.state, body.username, body.password)
    _set_session_cookie(response, session.session_id, config)
    return LoginResponse(phase=result.phase, message=result.message)


@router.post("/verify-otp", response_model=LoginResponse)
async def submit_code(
    body: VerifyOTPRequest,
    response: Response,
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
    flow: LoginFlow = Depends(get_login_flow),
    config: Settings = Depends(get_settings),
) -> LoginResponse:
    """Complete the login with the emailed code."""
    async with manager.session(session_id) as session:
        result = await flow.submit_code(session.state, body.otp)
    _set_session_cookie(response, session.session_id, config)
    return LoginResponse(phase=result.phase, message=result.message)


@router.post("/logout", response_model=SessionInfo)
async def logout(
    response: Response,
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
    flow: LoginFlow = Depends(get_login_flow),
    config: Settings = Depends(get_settings),
) -> SessionInfo:
    """End the session; harmless when nobody is signed in."""
    if manager.peek(session_id) is not None:
        async with manager.session(session_id) as session:
            flow.logout(session.state)
        manager.clear(session.session_id)
    response.delete_cookie(config.session_cookie_name)
    return SessionInfo(phase=Phase.ANONYMOUS)


# ── Read-only ────────────────────────────────────────────

@router.get("/session", response_model=SessionInfo)
async def current_session(
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
) -> SessionInfo:
    state = manager.peek(session_id)
    if state is None:
        return SessionInfo(phase=Phase.ANONYMOUS)
    username = state.authenticated_username or state.pending_username
    return SessionInfo(phase=LoginFlow.current_phase(state), username=username)


@router.get(DASHBOARD_PATH, response_model=DashboardResponse)
async def dashboard(
    session_id: str | None = Depends(get_session_id),
    manager: SessionManager = Depends(get_session_manager),
):
    """Protected resource; anonymous and pending sessions are redirected."""
    state = manager.peek(session_id)
    if state is None:
        return RedirectResponse(LOGIN_PATH, status_code=303)
    username = LoginFlow.require_authenticated(state)
    return DashboardResponse(username=username, login_time=state.login_timestamp)
