"""Inbound email reply handling: classification, processing and polling."""

from __future__ import annotations

from .classifier import classify_reply, extract_donor_id, extract_request_id, reply_text, strip_html
from .poller import InboundReplyPoller, PollerState
from .processor import ReplyOutcome, ReplyProcessor

__all__ = [
    "InboundReplyPoller",
    "PollerState",
    "ReplyOutcome",
    "ReplyProcessor",
    "classify_reply",
    "extract_donor_id",
    "extract_request_id",
    "reply_text",
    "strip_html",
]
