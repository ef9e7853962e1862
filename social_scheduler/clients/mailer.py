"""SMTP delivery for notification and reminder emails."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from social_scheduler.core.config import MailSettings, RetrySettings
from social_scheduler.utils.http import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)


class SMTPMailer:
    """Send plain-text emails through the configured SMTP relay."""

    def __init__(self, settings: MailSettings, retry_config: RetryConfig | None = None) -> None:
        self._settings = settings
        self._retry = retry_config or RetryConfig(retries=2, delay_seconds=2.0)

    @classmethod
    def from_settings(cls, mail: MailSettings, retry: RetrySettings) -> "SMTPMailer":
        return cls(
            mail,
            RetryConfig(retries=retry.mail_retries, delay_seconds=retry.mail_delay_ms / 1000),
        )

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        self._ensure_configured()
        message = EmailMessage()
        message["From"] = f"{self._settings.sender_name} <{self._settings.sender}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    async def send(self, to: str, subject: str, body: str) -> None:
        message = self.build_message(to, subject, body)
        await call_with_retry(
            asyncio.to_thread,
            self._deliver,
            message,
            retry_config=self._retry,
            retry_on=(smtplib.SMTPException, OSError),
        )
        logger.info("Email sent to %s", to)

    def _deliver(self, message: EmailMessage) -> None:
        settings = self._settings
        with smtplib.SMTP(
            settings.smtp_host, settings.smtp_port, timeout=settings.timeout_seconds
        ) as server:
            if settings.use_starttls:
                server.starttls()
            server.login(settings.username or settings.sender, settings.password)
            server.send_message(message)

    def _ensure_configured(self) -> None:
        missing = [
            name
            for name, value in (
                ("EMAIL_SENDER", self._settings.sender),
                ("EMAIL_PASSWORD", self._settings.password),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"Missing required environment variable: {', '.join(missing)}")


__all__ = ["SMTPMailer"]
