"""Custom Exception Hierarchy for the BloodConnect backend
This module defines a typed exception hierarchy that enables precise error
handling and structured error responses across the application.

Exception Handling Flow:
    1. Service layer raises typed exception
    2. FastAPI exception handler catches it (see main.py)
    3. Handler converts to structured JSON response
    4. Client receives error envelope with code, message, and context

Delivery failures (:class:`DeliveryError`) never reach the HTTP layer: the
dispatcher and requester notifier convert them into failure counts.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base exception for all service layer errors."""


class ValidationError(ServiceError):
    """Raised when input validation fails.

    ``errors`` carries every violation found, not only the first one, so the
    caller can render a complete list.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.message = message
        self.field = field
        if errors is None:
            errors = [{"field": field, "message": message}]
        self.errors = errors
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """Raised when a requested resource cannot be located."""

    def __init__(self, message: str, resource: str | None = None):
        self.message = message
        self.resource = resource
        super().__init__(self.message)


class ConfigurationError(ServiceError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, key: str | None = None):
        self.message = message
        self.key = key
        super().__init__(self.message)


class DeliveryError(ServiceError):
    """Raised when an outbound notification cannot be delivered."""

    def __init__(self, message: str, recipient: str | None = None, channel: str | None = None):
        self.message = message
        self.recipient = recipient
        self.channel = channel
        super().__init__(self.message)


class MailboxError(ServiceError):
    """Raised when the inbound mailbox cannot be reached or read."""

    def __init__(self, message: str, stage: str | None = None):
        self.message = message
        self.stage = stage
        super().__init__(self.message)


class DatabaseError(ServiceError):
    """Raised when database operations fail."""

    def __init__(self, message: str, operation: str | None = None):
        self.message = message
        self.operation = operation
        super().__init__(self.message)


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "DeliveryError",
    "MailboxError",
    "DatabaseError",
]
