"""Guestbook service facade.

This module is integration-agnostic. It only relies on ports for message,
preference, and code storage, enabling different front ends or adapters
without changes here.

Posting enforces a strict order:
1) Session present, else Unauthenticated
2) Identity verified, else NotVerified (the store is never touched)
3) Content validation with the root or reply length budget
4) Reply parent must exist
5) Insert into the append-only message store

Callers must treat any previously fetched feed page or ignore list as stale
after a successful post or preference update and fetch it again.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from core.config import FeedConfig, PostingLimits
from core.content_validation import validate_message
from core.errors import NotFound, NotVerified, Unauthenticated, ValidationFailed
from core.feed import FeedComposer, is_creator_label, toggle_ignored
from core.models import FeedPage, MessageView, NewMessage, Session
from core.ports import MessageStorePort, PreferenceStorePort, VerificationCodePort
from core.replies import ReplyResolver
from core.verification import VerificationGate, VerificationStatus

LOGGER = logging.getLogger(__name__)


def _dedupe(labels: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for label in labels:
        if label in seen:
            continue
        seen.add(label)
        result.append(label)
    return result


class GuestbookService:
    """Orchestrates the gate, validator, composer, and stores."""

    def __init__(
        self,
        messages: MessageStorePort,
        preferences: PreferenceStorePort,
        codes: VerificationCodePort,
        limits: Optional[PostingLimits] = None,
        feed_config: Optional[FeedConfig] = None,
    ) -> None:
        self._messages = messages
        self._preferences = preferences
        self._limits = limits or PostingLimits()
        self._feed_config = feed_config or FeedConfig()
        self._resolver = ReplyResolver(messages)
        self._composer = FeedComposer(messages, self._resolver, self._feed_config.creator_label)
        self.gate = VerificationGate(codes)

    @property
    def limits(self) -> PostingLimits:
        return self._limits

    @property
    def default_page_size(self) -> int:
        return self._feed_config.page_size

    def _page_size(self, page_size: Optional[int]) -> int:
        # Only None falls back; 0 must reach the composer and be rejected.
        return self.default_page_size if page_size is None else page_size

    def get_feed_page(self, page: int = 1, page_size: Optional[int] = None) -> FeedPage:
        return self._composer.compose_page(page, self._page_size(page_size))

    def get_author_posts(
        self, author_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> FeedPage:
        return self._composer.compose_author_page(author_id, page, self._page_size(page_size))

    def post_message(
        self,
        session: Optional[Session],
        text: str,
        reply_to_id: Optional[str] = None,
    ) -> MessageView:
        """Create a root message or a reply for the session's identity."""

        if session is None:
            raise Unauthenticated()
        if not self.gate.can_post(session):
            raise NotVerified()

        is_reply = bool(reply_to_id)
        result = validate_message(text, self._limits.constraints_for(is_reply))
        if not result.accepted:
            LOGGER.info(
                "Post rejected for %s: %s",
                session.identity.id,
                ", ".join(reason.value for reason in result.reasons),
            )
            raise ValidationFailed(result.reasons)

        parent = None
        if is_reply:
            parent = self._resolver.resolve(reply_to_id)
            if parent is None:
                raise NotFound(f"Message {reply_to_id} does not exist")

        stored = self._messages.insert_message(
            NewMessage(
                text=result.sanitized_text,
                author_id=session.identity.id,
                reply_to_id=reply_to_id if is_reply else None,
            )
        )
        LOGGER.info("Message %s posted by %s", stored.id, session.identity.id)

        label = stored.author_label or session.identity.label
        return MessageView(
            id=stored.id,
            text=stored.text,
            created_at=stored.created_at,
            author_label=label,
            author_id=stored.author_id,
            reply_to_id=stored.reply_to_id,
            reply_to_text=parent.text if parent else None,
            reply_to_author_label=parent.author_label if parent else None,
            is_creator=is_creator_label(label, self._feed_config.creator_label),
        )

    def get_ignore_list(self, viewer_id: str) -> List[str]:
        return self._preferences.get_ignored(viewer_id)

    def set_ignore_list(self, viewer_id: str, labels: Iterable[str]) -> None:
        """Replace the viewer's whole ignore list."""

        labels = _dedupe(labels)
        self._preferences.set_ignored(viewer_id, labels)
        LOGGER.info("Ignore list updated for %s (%s labels)", viewer_id, len(labels))

    def toggle_ignored(self, viewer_id: str, label: str) -> List[str]:
        """Ignore the label if not yet ignored, otherwise un-ignore it."""

        updated = toggle_ignored(self.get_ignore_list(viewer_id), label)
        self.set_ignore_list(viewer_id, updated)
        return updated

    def verification_status(self, session: Optional[Session]) -> VerificationStatus:
        return self.gate.status_for(session)

    def request_verification_code(
        self, session: Optional[Session], status: Optional[VerificationStatus] = None
    ) -> VerificationStatus:
        return self.gate.request_code(session, status)

    def submit_verification_code(
        self,
        session: Optional[Session],
        code: str,
        status: Optional[VerificationStatus] = None,
    ) -> VerificationStatus:
        return self.gate.submit_code(session, code, status)
