"""Message content validation (core domain).

Validation is a pure transformation: the input text is sanitized first and
every rule is then checked against the sanitized form, so a single message
can fail several rules at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Iterable, List, Optional, Tuple

from core.config import ContentConstraints

_LINE_ENDINGS = re.compile(r"\r\n?")
# Control and zero-width characters, keeping tab and newline.
_INVISIBLE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f\u200b-\u200f\u2060\ufeff]")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
# Bare domains: word start, host label of 2+ chars, lowercase TLD.
_LINK = re.compile(
    r"(?i:https?://|ftp://|www\.)\S+"
    r"|(?:^|(?<=\s))[A-Za-z0-9][A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*"
    r"\.(?:com|net|org|io|dev|app|co|me|info|biz|xyz|ly|gg|tv)\b",
    re.MULTILINE,
)


class RejectionReason(str, Enum):
    """Reason codes, declared in the order they are reported."""

    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    LINKS = "links"
    PROFANITY = "profanity"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    RejectionReason.TOO_SHORT: "Message is too short",
    RejectionReason.TOO_LONG: "Message is too long",
    RejectionReason.LINKS: "Links are not allowed",
    RejectionReason.PROFANITY: "Message contains inappropriate language",
}


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    sanitized_text: Optional[str]
    reasons: Tuple[RejectionReason, ...] = field(default_factory=tuple)


def sanitize_text(text: str) -> str:
    """Normalize whitespace and drop invisible characters."""

    cleaned = _LINE_ENDINGS.sub("\n", text)
    cleaned = _INVISIBLE.sub("", cleaned)
    cleaned = _HORIZONTAL_SPACE.sub(" ", cleaned)
    cleaned = "\n".join(line.rstrip() for line in cleaned.split("\n"))
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    return cleaned.strip()


def _compile_blocked_words(words: Iterable[str]) -> Optional[re.Pattern]:
    escaped = [re.escape(word.strip()) for word in words if word and word.strip()]
    if not escaped:
        return None
    return re.compile(r"\b(?:" + "|".join(escaped) + r")\b", re.IGNORECASE)


def validate_message(text: str, constraints: ContentConstraints) -> ValidationResult:
    """Validate one message body against the given constraints.

    Empty or whitespace-only text always fails the minimum length check,
    even when the configured minimum is zero.
    """

    sanitized = sanitize_text(text or "")
    reasons: List[RejectionReason] = []

    if len(sanitized) < max(constraints.min_length, 1):
        reasons.append(RejectionReason.TOO_SHORT)
    if len(sanitized) > constraints.max_length:
        reasons.append(RejectionReason.TOO_LONG)
    if not constraints.allow_links and _LINK.search(sanitized):
        reasons.append(RejectionReason.LINKS)
    if not constraints.allow_profanity:
        blocked = _compile_blocked_words(constraints.blocked_words)
        if blocked is not None and blocked.search(sanitized):
            reasons.append(RejectionReason.PROFANITY)

    if reasons:
        return ValidationResult(accepted=False, sanitized_text=None, reasons=tuple(reasons))
    return ValidationResult(accepted=True, sanitized_text=sanitized)
