"""Default configuration values for the donation workflow."""

from __future__ import annotations

from core.utils.env import get_bool_env, get_int_env

SMS_ENABLED = get_bool_env("SMS_ENABLED", False)
"""SMS is a logging stub; when disabled the channel reports no delivery."""

BACKGROUND_TASK_CONCURRENCY = get_int_env("BACKGROUND_TASK_CONCURRENCY", 10)
"""Maximum detached notification tasks running at once."""

BACKGROUND_DRAIN_TIMEOUT_SECONDS = get_int_env("BACKGROUND_DRAIN_TIMEOUT_SECONDS", 15)
"""How long shutdown waits for in-flight notifications before cancelling."""

MESSAGE_MAX_LENGTH = 500
"""Confirmation messages are truncated to this many characters."""

ADMIN_NOTES_MAX_LENGTH = 200

__all__ = [
    "SMS_ENABLED",
    "BACKGROUND_TASK_CONCURRENCY",
    "BACKGROUND_DRAIN_TIMEOUT_SECONDS",
    "MESSAGE_MAX_LENGTH",
    "ADMIN_NOTES_MAX_LENGTH",
]
