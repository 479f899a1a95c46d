"""Pattern rules that turn a free-text donor reply into an intent.

Affirmative patterns win over negative ones, except that a negation is
masked together with the affirmative it governs ("won't be available",
"not able to help") so that "Sorry, I'm not available" reads as a decline.
Only the donor's own words are classified: quoted lines and the quoted
original alert below an "On ... wrote:" attribution are dropped first.
"""

from __future__ import annotations

import html
import re

from config.email import DONOR_ID_HEADER, REQUEST_ID_HEADER
from infrastructure.mail import InboundMessage

from ..types import ReplyIntent

SUBJECT_REQUEST_ID = re.compile(r"(?:request|req)[\s#:]*(\d+)", re.IGNORECASE)

AFFIRMATIVE_PATTERNS = (
    re.compile(
        r"\b(yes|yeah|yep|yup|sure|ok|okay|confirmed|confirm|i can|i will|available|"
        r"ready|willing|accept|agree)\b"
    ),
    re.compile(
        r"\b(i can help|i can donate|i'm available|i am available|count me in|i'm in|sign me up)\b"
    ),
    re.compile(r"\b(ready to donate|willing to help|happy to help|glad to help)\b"),
)

NEGATIVE_PATTERNS = (
    re.compile(r"\b(no|nope|sorry|unavailable|can't|cannot|decline|refuse|not available)\b"),
    re.compile(r"\b(won't|will not|unable|not able)\b"),
)

NEGATED_AFFIRMATIVES = re.compile(
    r"\b(?:not|never|won't|will not|can't|cannot|unable to)\s+(?:[\w']+\s+){0,2}?"
    r"(?:available|ready|willing|able|sure|help|donate|confirm|accept|agree)\b"
    r"|\b(?:can't|cannot|won't)\b"
)

# Reply attributions and forwarded-message separators; everything after is quoted
QUOTE_MARKERS = (
    re.compile(r"^[ \t]*On\s[^\n]{0,200}?(?:\n[^\n]{0,100}?)?wrote:[ \t]*$", re.MULTILINE),
    re.compile(r"^[ \t]*-{2,}\s*Original Message\s*-{2,}", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^[ \t]*-{2,}\s*Forwarded message\s*-{2,}", re.MULTILINE | re.IGNORECASE),
)
_HTML_QUOTE = re.compile(r"<blockquote\b.*?</blockquote>", re.IGNORECASE | re.DOTALL)
_TRAILING_ATTRIBUTION = re.compile(r"\s*\bOn\s[^<>]{0,200}?\bwrote:\s*$")

_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip()
    return int(value) if value.isdigit() else None


def extract_request_id(message: InboundMessage) -> int | None:
    """Correlation header first, then a ``Request #123`` style subject."""

    from_header = _parse_int(message.header(REQUEST_ID_HEADER))
    if from_header is not None:
        return from_header

    match = SUBJECT_REQUEST_ID.search(message.subject or "")
    return int(match.group(1)) if match else None


def extract_donor_id(message: InboundMessage) -> int | None:
    return _parse_int(message.header(DONOR_ID_HEADER))


def strip_html(markup: str) -> str:
    """Drop tags, decode entities and collapse whitespace."""

    text = html.unescape(_TAG.sub(" ", markup or ""))
    return _WHITESPACE.sub(" ", text).strip()


def strip_quoted_text(text: str) -> str:
    """Keep only what the sender wrote above the quoted original."""

    cut = len(text)
    for marker in QUOTE_MARKERS:
        match = marker.search(text)
        if match:
            cut = min(cut, match.start())
    own_lines = [line for line in text[:cut].splitlines() if not line.lstrip().startswith(">")]
    return "\n".join(own_lines).strip()


def strip_quoted_html(markup: str) -> str:
    text = strip_html(_HTML_QUOTE.sub(" ", markup or ""))
    return _TRAILING_ATTRIBUTION.sub("", text).strip()


def reply_text(message: InboundMessage) -> str:
    """The sender's own words from the plain-text part, else from the HTML part."""

    if message.text_body and message.text_body.strip():
        return strip_quoted_text(message.text_body)
    if message.html_body:
        return strip_quoted_html(message.html_body)
    return ""


def classify_reply(body: str) -> ReplyIntent:
    """Classify ``body`` as a confirmation, a decline or neither."""

    if not body or not body.strip():
        return ReplyIntent.UNCLASSIFIABLE

    normalised = body.lower().replace("’", "'").strip()
    unnegated = NEGATED_AFFIRMATIVES.sub(" ", normalised)

    if any(pattern.search(unnegated) for pattern in AFFIRMATIVE_PATTERNS):
        return ReplyIntent.CONFIRMED
    if any(pattern.search(normalised) for pattern in NEGATIVE_PATTERNS):
        return ReplyIntent.DECLINED
    return ReplyIntent.UNCLASSIFIABLE


__all__ = [
    "classify_reply",
    "extract_donor_id",
    "extract_request_id",
    "reply_text",
    "strip_html",
    "strip_quoted_html",
    "strip_quoted_text",
]
