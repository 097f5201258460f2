"""FastAPI dependencies that hand out the components built in the lifespan."""

from fastapi import Request

from otp_login.auth.login_flow import LoginFlow
from otp_login.config import Settings
from otp_login.services.session_manager import SessionManager


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_login_flow(request: Request) -> LoginFlow:
    return request.app.state.login_flow


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_session_id(request: Request) -> str | None:
    """Session token from the request cookie, if any."""
    return request.cookies.get(request.app.state.settings.session_cookie_name)
