"""Outbound SMTP and inbound IMAP settings.

IMAP credentials fall back to the SMTP ones, so a single mailbox account can
both send donor notifications and receive their replies.
"""

from __future__ import annotations

import os

from core.utils.env import get_bool_env, get_int_env

# Outbound (SMTP)
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = get_int_env("SMTP_PORT", 587)
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL", "") or SMTP_USERNAME
SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "BloodConnect")
SMTP_TIMEOUT_SECONDS = get_int_env("SMTP_TIMEOUT", 30)
"""Socket timeout for a single SMTP conversation (in seconds)."""

# Inbound (IMAP)
EMAIL_MONITORING_ENABLED = get_bool_env("EMAIL_MONITORING_ENABLED", False)
"""Start the reply poller on application startup."""

IMAP_HOST = os.getenv("IMAP_HOST", "imap.gmail.com")
IMAP_PORT = get_int_env("IMAP_PORT", 993)
IMAP_USERNAME = os.getenv("IMAP_USERNAME", "") or SMTP_USERNAME
IMAP_PASSWORD = os.getenv("IMAP_PASSWORD", "") or SMTP_PASSWORD
IMAP_MAILBOX = os.getenv("IMAP_MAILBOX", "INBOX")

EMAIL_POLL_INTERVAL_SECONDS = get_int_env("EMAIL_POLL_INTERVAL_SECONDS", 300)
"""Delay between inbox polls (5 minutes)."""

EMAIL_LOOKBACK_HOURS = get_int_env("EMAIL_LOOKBACK_HOURS", 24)
"""How far back the first poll looks for unseen replies."""

# Correlation headers stamped on outbound donor emails
REQUEST_ID_HEADER = "X-Request-ID"
DONOR_ID_HEADER = "X-Donor-ID"

__all__ = [
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USERNAME",
    "SMTP_PASSWORD",
    "SMTP_FROM_EMAIL",
    "SMTP_FROM_NAME",
    "SMTP_TIMEOUT_SECONDS",
    "EMAIL_MONITORING_ENABLED",
    "IMAP_HOST",
    "IMAP_PORT",
    "IMAP_USERNAME",
    "IMAP_PASSWORD",
    "IMAP_MAILBOX",
    "EMAIL_POLL_INTERVAL_SECONDS",
    "EMAIL_LOOKBACK_HOURS",
    "REQUEST_ID_HEADER",
    "DONOR_ID_HEADER",
]
