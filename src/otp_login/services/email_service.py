"""Email service — sends login codes via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from otp_login.config import Settings, settings as default_settings
from otp_login.services.notifier import BaseNotifier

logger = logging.getLogger(__name__)


class EmailService(BaseNotifier):
    """Sends one-time codes using the configured SMTP server.

    With no SMTP credentials configured the code is written to the log
    instead, which keeps local development usable without a mailbox.
    """

    def __init__(self, config: Settings | None = None) -> None:
        self._settings = config or default_settings

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.email_user and self._settings.email_pass)

    def build_message(self, to_email: str, code: str) -> EmailMessage:
        """Compose the OTP email (plain text with an HTML alternative)."""
        ttl = self._settings.otp_ttl_seconds

        msg = EmailMessage()
        msg["Subject"] = "Your Login OTP"
        msg["From"] = self._settings.sender_address
        msg["To"] = to_email
        msg.set_content(
            f"Your OTP for login is: {code}\n\n"
            f"This OTP will expire in {ttl} seconds.\n"
            "If you didn't request this, please ignore this email.\n"
        )
        msg.add_alternative(
            "<h2>Your One-Time Password</h2>"
            "<p>Your OTP for login is: "
            f'<strong style="font-size: 24px; color: #007bff;">{code}</strong></p>'
            f"<p>This OTP will expire in {ttl} seconds.</p>"
            "<p>If you didn't request this, please ignore this email.</p>",
            subtype="html",
        )
        return msg

    async def notify(self, address: str, code: str) -> bool:
        """Email *code* to *address*; ``False`` if the SMTP exchange fails."""
        if not self.is_configured:
            logger.warning(
                "EMAIL_USER/EMAIL_PASS not set — OTP for %s logged only: %s",
                address,
                code,
            )
            return True

        msg = self.build_message(address, code)
        try:
            await aiosmtplib.send(
                msg,
                hostname=self._settings.smtp_host,
                port=self._settings.smtp_port,
                username=self._settings.email_user,
                password=self._settings.email_pass,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Error sending OTP email to %s: %s", address, exc)
            return False

        logger.info("OTP sent successfully to %s", address)
        return True

    async def verify_connection(self) -> bool:
        """Log in to the SMTP server once to check the configuration."""
        if not self.is_configured:
            return False

        smtp = aiosmtplib.SMTP(
            hostname=self._settings.smtp_host,
            port=self._settings.smtp_port,
            start_tls=True,
        )
        try:
            async with smtp:
                await smtp.login(self._settings.email_user, self._settings.email_pass)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Email configuration error: %s", exc)
            return False

        logger.info("Email server is ready to send messages")
        return True
