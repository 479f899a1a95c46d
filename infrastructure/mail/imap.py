"""Inbound mailbox access over IMAP4-over-SSL.

``imaplib`` is blocking, so every network call is pushed to a worker thread.
Messages are fetched with ``BODY.PEEK[]`` so reading never marks them seen;
only :meth:`ImapMailbox.mark_seen` does that.
"""

from __future__ import annotations

import asyncio
import email
import imaplib
import logging
from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.utils import parseaddr

from config.email import IMAP_HOST, IMAP_MAILBOX, IMAP_PASSWORD, IMAP_PORT, IMAP_USERNAME, SMTP_TIMEOUT_SECONDS
from core.exceptions import MailboxError

from .types import InboundMessage

logger = logging.getLogger(__name__)

# IMAP dates use English month abbreviations regardless of locale
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def imap_date(value: datetime) -> str:
    """Format ``value`` as an IMAP ``date`` search key (``18-Oct-2026``)."""

    return f"{value.day:02d}-{_MONTHS[value.month - 1]}-{value.year}"


def parse_message(ref: str, raw: bytes) -> InboundMessage:
    """Turn a raw RFC 822 payload into an :class:`InboundMessage`."""

    parsed: EmailMessage = email.message_from_bytes(raw, policy=policy.default)  # type: ignore[assignment]

    text_body = ""
    html_body: str | None = None
    plain_part = parsed.get_body(preferencelist=("plain",))
    if plain_part is not None:
        text_body = plain_part.get_content()
    html_part = parsed.get_body(preferencelist=("html",))
    if html_part is not None:
        html_body = html_part.get_content()

    headers = {name: str(value) for name, value in parsed.items()}
    _, sender = parseaddr(str(parsed.get("From", "")))

    return InboundMessage(
        ref=ref,
        sender=sender.strip().lower(),
        subject=str(parsed.get("Subject", "") or ""),
        text_body=text_body,
        html_body=html_body,
        headers=headers,
    )


class ImapMailbox:
    """Read and flag messages in a single IMAP folder."""

    def __init__(
        self,
        *,
        host: str = IMAP_HOST,
        port: int = IMAP_PORT,
        username: str = IMAP_USERNAME,
        password: str = IMAP_PASSWORD,
        mailbox: str = IMAP_MAILBOX,
        timeout: float = SMTP_TIMEOUT_SECONDS,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._mailbox = mailbox
        self._timeout = timeout
        self._client: imaplib.IMAP4_SSL | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._username and self._password)

    def _require_client(self, stage: str) -> imaplib.IMAP4_SSL:
        if self._client is None:
            raise MailboxError("IMAP mailbox is not connected", stage=stage)
        return self._client

    def _connect_blocking(self) -> imaplib.IMAP4_SSL:
        client = imaplib.IMAP4_SSL(self._host, self._port, timeout=self._timeout)
        client.login(self._username, self._password)
        status, _ = client.select(self._mailbox)
        if status != "OK":
            client.logout()
            raise imaplib.IMAP4.error(f"Cannot select mailbox {self._mailbox}")
        return client

    async def connect(self) -> None:
        try:
            self._client = await asyncio.to_thread(self._connect_blocking)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"IMAP connection failed: {exc}", stage="connect") from exc
        logger.debug("Connected to IMAP", extra={"imap_host": self._host, "mailbox": self._mailbox})

    async def list_unseen_since(self, since: datetime) -> list[str]:
        client = self._require_client("search")
        try:
            status, data = await asyncio.to_thread(
                client.uid, "search", None, "UNSEEN", "SINCE", imap_date(since)
            )
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"IMAP search failed: {exc}", stage="search") from exc
        if status != "OK" or not data or not data[0]:
            return []
        return [uid.decode() for uid in data[0].split()]

    async def fetch(self, ref: str) -> InboundMessage:
        client = self._require_client("fetch")
        try:
            status, data = await asyncio.to_thread(client.uid, "fetch", ref, "(BODY.PEEK[])")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"IMAP fetch failed for {ref}: {exc}", stage="fetch") from exc

        raw = next(
            (part[1] for part in data or [] if isinstance(part, tuple) and len(part) > 1),
            None,
        )
        if status != "OK" or raw is None:
            raise MailboxError(f"IMAP message {ref} not found", stage="fetch")
        return parse_message(ref, raw)

    async def mark_seen(self, ref: str) -> None:
        client = self._require_client("store")
        try:
            await asyncio.to_thread(client.uid, "store", ref, "+FLAGS", "(\\Seen)")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"IMAP store failed for {ref}: {exc}", stage="store") from exc

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await asyncio.to_thread(client.logout)
        except (imaplib.IMAP4.error, OSError):
            logger.debug("IMAP logout failed", exc_info=True)


__all__ = ["ImapMailbox", "imap_date", "parse_message"]
