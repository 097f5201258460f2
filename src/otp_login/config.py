"""OTP Login — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── App ───────────────────────────────────────────────
    app_name: str = "OTP Login"
    environment: str = "development"
    debug: bool = True
    port: int = 3000

    # ── Email delivery ────────────────────────────────────
    email_user: str = ""
    email_pass: str = ""
    email_from: str = ""
    test_email: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    notify_timeout_seconds: float = 10.0

    # ── One-time passcodes ────────────────────────────────
    otp_ttl_seconds: int = 60
    sweep_interval_seconds: float = 60.0

    # ── Sessions ──────────────────────────────────────────
    session_idle_minutes: int = 30
    session_cookie_name: str = "otp_session"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def cookie_secure(self) -> bool:
        """Only send the session cookie over HTTPS in production."""
        return self.environment == "production"

    @property
    def sender_address(self) -> str:
        return self.email_from or self.email_user

    def missing_email_settings(self) -> list[str]:
        """Names of the delivery variables that are not set."""
        required = {
            "EMAIL_USER": self.email_user,
            "EMAIL_PASS": self.email_pass,
            "TEST_EMAIL": self.test_email,
        }
        return [name for name, value in required.items() if not value]


# Singleton settings instance
settings = Settings()
