"""Mail transport adapters (outbound SMTP, inbound IMAP)."""

from __future__ import annotations

from .imap import ImapMailbox
from .smtp import SmtpMailer
from .types import InboundMailbox, InboundMessage, OutboundMailer

__all__ = [
    "ImapMailbox",
    "SmtpMailer",
    "InboundMailbox",
    "InboundMessage",
    "OutboundMailer",
]
