"""Outbound HTML email over SMTP with STARTTLS."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Mapping

from config.email import (
    SMTP_FROM_EMAIL,
    SMTP_FROM_NAME,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_TIMEOUT_SECONDS,
    SMTP_USERNAME,
)

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Send HTML messages through an authenticated SMTP relay.

    ``send`` never raises: transport and authentication failures are logged
    and reported as ``False`` so callers can count them.
    """

    def __init__(
        self,
        *,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        username: str = SMTP_USERNAME,
        password: str = SMTP_PASSWORD,
        from_email: str = SMTP_FROM_EMAIL,
        from_name: str = SMTP_FROM_NAME,
        timeout: float = SMTP_TIMEOUT_SECONDS,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_email = from_email or username
        self._from_name = from_name
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._username and self._password and self._from_email)

    @property
    def from_email(self) -> str:
        return self._from_email

    def _build_message(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        headers: Mapping[str, str] | None,
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = formataddr((self._from_name, self._from_email))
        message["To"] = to_address
        message["Subject"] = subject
        # Replies come back to the monitored inbox
        message["Reply-To"] = self._from_email
        for name, value in (headers or {}).items():
            message[name] = value
        message.attach(MIMEText(html_body, "html", "utf-8"))
        return message

    def _send_blocking(self, message: MIMEMultipart, to_address: str) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(self._username, self._password)
            server.sendmail(self._from_email, [to_address], message.as_string())

    async def send(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        headers: Mapping[str, str] | None = None,
    ) -> bool:
        """Send one HTML email; return whether the relay accepted it."""

        if not self.is_configured:
            logger.warning(
                "SMTP credentials not configured; email not sent",
                extra={"recipient": to_address},
            )
            return False
        if not to_address:
            logger.warning("Refusing to send email without a recipient address")
            return False

        message = self._build_message(to_address, subject, html_body, headers)
        try:
            await asyncio.to_thread(self._send_blocking, message, to_address)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "Failed to send email",
                extra={"recipient": to_address, "smtp_host": self._host, "error": str(exc)},
            )
            return False

        logger.info("Email sent", extra={"recipient": to_address, "subject": subject})
        return True


__all__ = ["SmtpMailer"]
