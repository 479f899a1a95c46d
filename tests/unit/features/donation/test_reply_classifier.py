from __future__ import annotations

import pytest

from features.donation.inbound.classifier import (
    classify_reply,
    extract_donor_id,
    extract_request_id,
    reply_text,
    strip_html,
    strip_quoted_text,
)
from features.donation.types import ReplyIntent
from tests.utils.donation_factories import reply


@pytest.mark.parametrize(
    "body",
    [
        "YES",
        "Yes, I can help!",
        "Yes, I can donate tomorrow",
        "ok",
        "Count me in",
        "I am available tomorrow morning",
        "Happy to help, call me",
        "Confirmed.",
        "Yes but only tomorrow",
    ],
)
def test_classify_reply_detects_confirmations(body: str) -> None:
    assert classify_reply(body) is ReplyIntent.CONFIRMED


@pytest.mark.parametrize(
    "body",
    [
        "No",
        "Sorry, I'm not available",
        "Sorry, I’m not available this week",
        "I can't make it",
        "I cannot donate, I'm travelling",
        "I have to decline",
        "Unavailable",
        "No, I won't be available this week",
        "I will not be able to help",
        "Sorry, I'm unable to donate",
        "I can't help this time",
    ],
)
def test_classify_reply_detects_declines(body: str) -> None:
    assert classify_reply(body) is ReplyIntent.DECLINED


@pytest.mark.parametrize(
    "body", ["", "   ", "What hospital is this?", "Maybe later", "I'm not sure yet"]
)
def test_classify_reply_leaves_unclear_text_unclassifiable(body: str) -> None:
    assert classify_reply(body) is ReplyIntent.UNCLASSIFIABLE


def test_affirmatives_match_whole_words_only() -> None:
    # "okra" and "yesterday" contain affirmative substrings
    assert classify_reply("I ate okra yesterday") is ReplyIntent.UNCLASSIFIABLE


def test_extract_request_id_prefers_correlation_header() -> None:
    message = reply("1", "yes", subject="Re: [Request #5]", headers={"x-request-id": "42"})

    assert extract_request_id(message) == 42


@pytest.mark.parametrize(
    ("subject", "expected"),
    [
        ("Re: Urgent Blood Donation Request - O- Needed [Request #17]", 17),
        ("RE: request 9", 9),
        ("Fwd: Req#123", 123),
        ("Re: blood donation", None),
    ],
)
def test_extract_request_id_falls_back_to_subject(subject: str, expected: int | None) -> None:
    assert extract_request_id(reply("1", "yes", subject=subject)) == expected


def test_non_numeric_header_is_ignored() -> None:
    message = reply("1", "yes", subject="Re: [Request #3]", headers={"X-Request-ID": "abc"})

    assert extract_request_id(message) == 3
    assert extract_donor_id(message) is None


def test_extract_donor_id_reads_header() -> None:
    assert extract_donor_id(reply("1", "yes", headers={"X-Donor-ID": " 12 "})) == 12


def test_strip_html_removes_tags_and_entities() -> None:
    assert strip_html("<p>Yes,&nbsp;I&#39;m <b>in</b></p>\n<br>") == "Yes, I'm in"


def test_reply_text_falls_back_to_html_part() -> None:
    message = reply("1", "", html_body="<div>Count me <i>in</i></div>")

    assert reply_text(message) == "Count me in"
    assert classify_reply(reply_text(message)) is ReplyIntent.CONFIRMED


def test_reply_text_prefers_plain_part() -> None:
    message = reply("1", "  No thanks  ", html_body="<p>Yes</p>")

    assert reply_text(message) == "No thanks"


ALERT_QUOTE = (
    "On Sat, Oct 18, 2026 at 9:00 AM BloodConnect <alerts@bloodconnect.example> wrote:\n"
    "> If you are available and willing to donate, reply to this email with YES or I can help.\n"
)


@pytest.mark.parametrize(
    ("own_words", "expected"),
    [
        ("No, sorry.", ReplyIntent.DECLINED),
        ("What hospital is this?", ReplyIntent.UNCLASSIFIABLE),
        ("Yes, on my way", ReplyIntent.CONFIRMED),
    ],
)
def test_quoted_alert_does_not_decide_the_intent(own_words: str, expected: ReplyIntent) -> None:
    message = reply("1", f"{own_words}\n\n{ALERT_QUOTE}")

    assert reply_text(message) == own_words
    assert classify_reply(reply_text(message)) is expected


def test_wrapped_attribution_and_inline_quotes_are_dropped() -> None:
    body = (
        "Sorry, I can't this time\n"
        "> YES\n"
        "\n"
        "On Sat, Oct 18, 2026 at 9:00 AM BloodConnect\n"
        "<alerts@bloodconnect.example> wrote:\n"
        "> I can help\n"
    )

    assert strip_quoted_text(body) == "Sorry, I can't this time"
    assert classify_reply(strip_quoted_text(body)) is ReplyIntent.DECLINED


def test_original_message_separator_ends_the_reply() -> None:
    body = "No thanks\n\n-----Original Message-----\nFrom: BloodConnect\nReply YES if you are available"

    assert strip_quoted_text(body) == "No thanks"


def test_html_reply_ignores_blockquoted_alert() -> None:
    message = reply(
        "1",
        "",
        html_body=(
            "<div>No, sorry</div>"
            '<div class="gmail_quote"><div>On Sat, Oct 18, 2026 at 9:00 AM BloodConnect wrote:</div>'
            '<blockquote class="gmail_quote"><p>Reply YES or I can help</p></blockquote></div>'
        ),
    )

    assert reply_text(message) == "No, sorry"
    assert classify_reply(reply_text(message)) is ReplyIntent.DECLINED
