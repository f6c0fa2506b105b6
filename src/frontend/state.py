"""State container for the feed browser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from core.feed import apply_ignore_list
from core.models import FeedPage, MessageView, Session
from core.verification import UNVERIFIED, VerificationStatus


@dataclass
class BrowserState:
    page: int = 1
    feed: Optional[FeedPage] = None
    ignored: List[str] = field(default_factory=list)
    show_ignored: bool = False
    session: Optional[Session] = None
    verification: VerificationStatus = UNVERIFIED
    error: Optional[str] = None
    author_id: Optional[str] = None
    author_label: Optional[str] = None

    @property
    def visible_entries(self) -> List[MessageView]:
        if self.feed is None:
            return []
        return apply_ignore_list(self.feed.entries, self.ignored, show_ignored=self.show_ignored)

    @property
    def can_go_next(self) -> bool:
        return bool(self.feed and self.feed.pagination and self.feed.pagination.has_next)

    @property
    def can_go_prev(self) -> bool:
        return bool(self.feed and self.feed.pagination and self.feed.pagination.has_prev)

    def entry(self, message_id: str) -> Optional[MessageView]:
        for entry in self.visible_entries:
            if entry.id == message_id:
                return entry
        return None

    def toggle_author(self, entry: Optional[MessageView]) -> None:
        """Switch to the entry author's timeline, or back to the whole feed."""

        if self.author_id is not None or entry is None:
            self.author_id = None
            self.author_label = None
        else:
            self.author_id = entry.author_id
            self.author_label = entry.author_label
        self.page = 1
