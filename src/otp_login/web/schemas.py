"""Request / response models for the login endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from otp_login.auth.session_state import Phase


class LoginRequest(BaseModel):
    # Defaults let the login guard, not pydantic, report missing fields
    username: str = ""
    password: str = ""


class VerifyOTPRequest(BaseModel):
    otp: str = ""


class LoginResponse(BaseModel):
    phase: Phase
    message: str


class SessionInfo(BaseModel):
    phase: Phase
    username: str | None = None


class DashboardResponse(BaseModel):
    username: str
    login_time: datetime | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
