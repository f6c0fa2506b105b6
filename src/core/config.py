"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


@dataclass(frozen=True)
class ContentConstraints:
    """Rules applied by the content validator to one message body."""

    max_length: int
    min_length: int = 1
    allow_links: bool = False
    allow_profanity: bool = False
    blocked_words: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PostingLimits:
    """Root messages get a smaller length budget than replies."""

    root_max_length: int = 200
    reply_max_length: int = 1000
    min_length: int = 1
    allow_links: bool = False
    allow_profanity: bool = False
    blocked_words: Tuple[str, ...] = field(default_factory=tuple)

    def constraints_for(self, is_reply: bool) -> ContentConstraints:
        """Return the validator constraints for a root message or a reply."""

        base = ContentConstraints(
            max_length=self.root_max_length,
            min_length=self.min_length,
            allow_links=self.allow_links,
            allow_profanity=self.allow_profanity,
            blocked_words=self.blocked_words,
        )
        if is_reply:
            return replace(base, max_length=self.reply_max_length)
        return base


@dataclass(frozen=True)
class FeedConfig:
    """Feed presentation settings."""

    creator_label: Optional[str] = None
    page_size: int = 50


@dataclass(frozen=True)
class VerificationConfig:
    """Settings for the development code issuer."""

    code_length: int = 6
    ttl_minutes: int = 10
    max_attempts: int = 3
