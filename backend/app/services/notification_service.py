from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from app.core.config import Settings
from app.core.exceptions import ResetTokenError, StorageError
from app.models.notification import NotificationReport
from app.services.password_reset_service import PasswordResetService

logger = logging.getLogger(__name__)

EMAIL_CLOSING = "Thank you,"
EMAIL_SIGNATURE = "Online PUM Administrator"
DEFAULT_RESET_TEXT = (
    "You have been registered in Online PUM.\n\n"
    "Please use the link below to set your password. The link expires in 24 hours.\n\n"
    "{link}"
)


class SmtpNotifier:
    """Sends one password-reset email per recipient over SMTP."""

    def __init__(self, reset_service: PasswordResetService) -> None:
        self.reset_service = reset_service
        self.initialized = False
        self.host = ""
        self.port = 587
        self.username = ""
        self.password = ""
        self.use_tls = True
        self.timeout_seconds = 12.0
        self.sender = ""
        self.subject = ""

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.SMTP_HOST or not settings.EMAIL_SENDER:
            logger.warning("SMTP settings missing — SmtpNotifier not initialized")
            return

        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.timeout_seconds = settings.SMTP_TIMEOUT_SECONDS
        self.sender = settings.EMAIL_SENDER
        self.subject = settings.EMAIL_SUBJECT
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False

    async def send_password_reset_emails(self, recipients: list[str]) -> NotificationReport:
        return await self.send_reset_links(recipients, self.subject, DEFAULT_RESET_TEXT)

    async def send_reset_links(self, recipients: list[str], subject: str, text: str) -> NotificationReport:
        report = NotificationReport()
        if not self.initialized:
            logger.warning("SmtpNotifier not initialized — %d reset emails not sent", len(recipients))
            report.failed.extend(recipients)
            return report

        for recipient in recipients:
            try:
                link = await self.reset_service.build_reset_link(recipient)
                message = self._build_message(recipient, subject, text.replace("{link}", link))
                await asyncio.to_thread(self._deliver, message)
            except (ResetTokenError, StorageError, smtplib.SMTPException, OSError):
                logger.exception("Failed to send reset email to %s", recipient)
                report.failed.append(recipient)
                continue
            report.sent.append(recipient)

        logger.info("Reset emails: %d sent, %d failed", len(report.sent), len(report.failed))
        return report

    def _build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(f"{body}\n\n{EMAIL_CLOSING}\n{EMAIL_SIGNATURE}")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(message)

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False
        try:
            await asyncio.to_thread(self._noop)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("SMTP connection check failed")
            return False

    def _noop(self) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as server:
            server.noop()
