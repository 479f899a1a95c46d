"""Transport-neutral mail types shared by the SMTP and IMAP adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Protocol, runtime_checkable


@dataclass(slots=True)
class InboundMessage:
    """A fetched inbox message reduced to what reply processing needs."""

    ref: str
    sender: str
    subject: str
    text_body: str = ""
    html_body: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""

        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@runtime_checkable
class OutboundMailer(Protocol):
    async def send(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        headers: Mapping[str, str] | None = None,
    ) -> bool: ...


@runtime_checkable
class InboundMailbox(Protocol):
    @property
    def is_configured(self) -> bool: ...

    async def connect(self) -> None: ...

    async def list_unseen_since(self, since: datetime) -> list[str]: ...

    async def fetch(self, ref: str) -> InboundMessage: ...

    async def mark_seen(self, ref: str) -> None: ...

    async def disconnect(self) -> None: ...


__all__ = ["InboundMessage", "OutboundMailer", "InboundMailbox"]
