"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from otp_login.auth.errors import AuthError
from otp_login.auth.login_flow import LoginFlow
from otp_login.config import Settings, settings
from otp_login.otp.base import BaseOTPRegistry
from otp_login.otp.registry import InMemoryOTPRegistry
from otp_login.otp.sweeper import OTPSweeper
from otp_login.services.email_service import EmailService
from otp_login.services.notifier import BaseNotifier
from otp_login.services.session_manager import SessionManager
from otp_login.web.errors import auth_error_handler, request_validation_handler
from otp_login.web.router import router as login_router

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    registry: BaseOTPRegistry | None = None,
    notifier: BaseNotifier | None = None,
) -> FastAPI:
    """Build the application.

    The registry, session store and sweeper are created when the app
    starts and live on ``app.state`` until shutdown.  *registry* and
    *notifier* replace the defaults (in-memory store, SMTP email).
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hook."""
        logger.info("Starting %s …", config.app_name)

        missing = config.missing_email_settings()
        if missing:
            logger.warning(
                "Missing email settings %s — OTPs will be logged, not emailed",
                ", ".join(missing),
            )

        otp_registry = registry or InMemoryOTPRegistry(ttl_seconds=config.otp_ttl_seconds)
        otp_notifier = notifier or EmailService(config)
        if isinstance(otp_notifier, EmailService) and otp_notifier.is_configured:
            await otp_notifier.verify_connection()

        session_manager = SessionManager(idle_seconds=config.session_idle_minutes * 60)
        sweeper = OTPSweeper(
            otp_registry,
            interval_seconds=config.sweep_interval_seconds,
            session_manager=session_manager,
        )

        app.state.settings = config
        app.state.registry = otp_registry
        app.state.session_manager = session_manager
        app.state.login_flow = LoginFlow(
            otp_registry,
            otp_notifier,
            notify_address=config.test_email,
            notify_timeout=config.notify_timeout_seconds,
        )
        app.state.sweeper = sweeper
        sweeper.start()

        logger.info("Environment: %s, port %s", config.environment, config.port)
        logger.info("Email configured: %s", config.sender_address or "(none)")
        logger.info("Test emails sent to: %s", config.test_email or "(none)")
        yield
        await sweeper.stop()
        logger.info("Shutting down %s …", config.app_name)

    app = FastAPI(
        title=config.app_name,
        description="Two-factor login: username/password followed by an emailed one-time code",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(login_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Simple liveness check."""
        return {
            "status": "healthy",
            "app": config.app_name,
            "outstanding_otps": len(request.app.state.registry),
            "active_sessions": request.app.state.session_manager.active_count,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
