"""Feed page composition and caller-side ignore filtering.

Composition never applies a viewer's ignore list: pagination totals always
describe the full feed, and filtering is a cosmetic narrowing of a page the
caller already fetched. A filtered page can therefore show fewer entries
than its nominal size.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from core.models import FeedPage, MessageView, Pagination, StoredMessage
from core.ports import MessageStorePort
from core.replies import ReplyResolver

LOGGER = logging.getLogger(__name__)


def build_pagination(page: int, page_size: int, total: int) -> Pagination:
    total_pages = -(-total // page_size)
    return Pagination(
        page=page,
        limit=page_size,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def is_creator_label(label: str, creator_label: Optional[str]) -> bool:
    """Case-insensitive comparison against the configured creator label."""

    if not creator_label or not label:
        return False
    return label.lower() == creator_label.lower()


class FeedComposer:
    """Builds display-ready feed pages from the message store."""

    def __init__(
        self,
        messages: MessageStorePort,
        resolver: ReplyResolver,
        creator_label: Optional[str] = None,
    ) -> None:
        self._messages = messages
        self._resolver = resolver
        self._creator_label = creator_label

    def compose_page(self, page: int, page_size: int) -> FeedPage:
        """Return one page of the whole feed, roots and replies interleaved."""

        return self._compose(page, page_size, author_id=None)

    def compose_author_page(self, author_id: str, page: int, page_size: int) -> FeedPage:
        """Return one page of a single author's messages."""

        return self._compose(page, page_size, author_id=author_id)

    def _compose(self, page: int, page_size: int, author_id: Optional[str]) -> FeedPage:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")

        offset = (page - 1) * page_size
        stored = self._messages.list_messages(offset, page_size, author_id=author_id)
        total = self._messages.count_messages(author_id=author_id)

        entries = [self._to_view(message) for message in stored]
        return FeedPage(entries=entries, pagination=build_pagination(page, page_size, total))

    def _to_view(self, message: StoredMessage) -> MessageView:
        reply_to_text = None
        reply_to_author_label = None
        if message.is_reply:
            parent = self._resolver.resolve(message.reply_to_id)
            if parent is None:
                # Entry is still shown with its reply marker, just without context.
                LOGGER.warning(
                    "Reply %s references missing message %s", message.id, message.reply_to_id
                )
            else:
                reply_to_text = parent.text
                reply_to_author_label = parent.author_label

        label = message.author_label
        return MessageView(
            id=message.id,
            text=message.text,
            created_at=message.created_at,
            author_label=label,
            author_id=message.author_id,
            reply_to_id=message.reply_to_id,
            reply_to_text=reply_to_text,
            reply_to_author_label=reply_to_author_label,
            is_creator=is_creator_label(label, self._creator_label),
        )


def apply_ignore_list(
    entries: Iterable[MessageView],
    ignored: Iterable[str],
    show_ignored: bool = False,
) -> List[MessageView]:
    """Hide entries whose author label is on the viewer's ignore list.

    Entries without an author label are never hidden.
    """

    entries = list(entries)
    if show_ignored:
        return entries
    ignored_set = set(ignored)
    return [entry for entry in entries if not entry.author_label or entry.author_label not in ignored_set]


def toggle_ignored(current: Iterable[str], label: str) -> List[str]:
    """Return the new full ignore list: remove label if present, else append."""

    current = list(current)
    if label in current:
        return [item for item in current if item != label]
    return current + [label]
