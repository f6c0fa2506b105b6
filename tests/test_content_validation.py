from __future__ import annotations

from core.config import ContentConstraints, PostingLimits
from core.content_validation import RejectionReason, sanitize_text, validate_message


def _constraints(**overrides) -> ContentConstraints:
    values = dict(max_length=200, min_length=1, allow_links=False, allow_profanity=False, blocked_words=("darn",))
    values.update(overrides)
    return ContentConstraints(**values)


def test_accepts_plain_text_and_returns_sanitized() -> None:
    result = validate_message("  hello   there  ", _constraints())
    assert result.accepted
    assert result.sanitized_text == "hello there"
    assert result.reasons == ()


def test_whitespace_only_fails_min_length_even_with_zero_minimum() -> None:
    result = validate_message(" \n\t  ", _constraints(min_length=0))
    assert not result.accepted
    assert result.reasons == (RejectionReason.TOO_SHORT,)
    assert result.sanitized_text is None


def test_too_long_is_measured_after_sanitizing() -> None:
    assert validate_message("a" * 200 + "   ", _constraints()).accepted
    result = validate_message("a" * 201, _constraints())
    assert result.reasons == (RejectionReason.TOO_LONG,)


def test_reports_every_violated_rule_in_order() -> None:
    text = "darn " + "x" * 200 + " see https://example.com"
    result = validate_message(text, _constraints())
    assert result.reasons == (
        RejectionReason.TOO_LONG,
        RejectionReason.LINKS,
        RejectionReason.PROFANITY,
    )


def test_links_detected_without_scheme() -> None:
    assert validate_message("visit www.example.org", _constraints()).reasons == (RejectionReason.LINKS,)
    assert validate_message("visit example.com now", _constraints()).reasons == (RejectionReason.LINKS,)
    assert validate_message("visit example.com now", _constraints(allow_links=True)).accepted
    assert validate_message("Example.com\nis great", _constraints()).reasons == (RejectionReason.LINKS,)


def test_missing_space_after_sentence_is_not_a_link() -> None:
    assert validate_message("Thanks for the tip.Me and my friends loved it", _constraints()).accepted
    assert validate_message("See you at 5.So fun", _constraints()).accepted


def test_profanity_is_whole_word_and_case_insensitive() -> None:
    assert validate_message("DARN it", _constraints()).reasons == (RejectionReason.PROFANITY,)
    assert validate_message("darnation is a word", _constraints()).accepted
    assert validate_message("DARN it", _constraints(allow_profanity=True)).accepted


def test_sanitize_strips_invisible_characters_and_extra_blank_lines() -> None:
    assert sanitize_text("a\u200bb\x07c") == "abc"
    assert sanitize_text("one\r\n\r\n\r\n\r\ntwo  ") == "one\n\ntwo"


def test_root_and_reply_budgets_differ() -> None:
    limits = PostingLimits()
    text = "y" * 250
    root = validate_message(text, limits.constraints_for(is_reply=False))
    reply = validate_message(text, limits.constraints_for(is_reply=True))
    assert RejectionReason.TOO_LONG in root.reasons
    assert reply.accepted
