"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage- or identity-specific types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, List, Optional


def pick_label(
    display_username: Optional[str],
    username: Optional[str],
    name: Optional[str],
) -> str:
    """Return the first non-empty of display name, handle, real name."""

    return display_username or username or name or ""


@dataclass(frozen=True)
class Author:
    """Author fields joined onto a stored message."""

    id: str
    display_username: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return pick_label(self.display_username, self.username, self.name)


@dataclass(frozen=True)
class Identity:
    """External identity as seen by the core."""

    id: str
    email: str
    email_verified: bool
    display_username: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return pick_label(self.display_username, self.username, self.name)

    @property
    def author(self) -> Author:
        return Author(
            id=self.id,
            display_username=self.display_username,
            username=self.username,
            name=self.name,
        )


@dataclass(frozen=True)
class Session:
    """An established session for one identity."""

    identity: Identity


@dataclass(frozen=True)
class NewMessage:
    """Validated input handed to the message store for insertion."""

    text: str
    author_id: str
    reply_to_id: Optional[str] = None


@dataclass(frozen=True)
class StoredMessage:
    """A persisted message with its author joined in.

    ``author`` is None when the author row is missing from the directory.
    """

    id: str
    text: str
    author_id: str
    created_at: datetime
    reply_to_id: Optional[str] = None
    author: Optional[Author] = None

    @property
    def is_reply(self) -> bool:
        return self.reply_to_id is not None

    @property
    def author_label(self) -> str:
        return self.author.label if self.author else ""


@dataclass(frozen=True)
class ResolvedParent:
    """Immediate parent of a reply, as shown next to it."""

    text: str
    author_label: str


@dataclass(frozen=True)
class MessageView:
    """Display-ready feed entry."""

    id: str
    text: str
    created_at: datetime
    author_label: str
    author_id: str
    reply_to_id: Optional[str] = None
    reply_to_text: Optional[str] = None
    reply_to_author_label: Optional[str] = None
    is_creator: bool = False

    @property
    def is_reply(self) -> bool:
        return self.reply_to_id is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(frozen=True)
class FeedPage:
    """One composed page of the feed plus pagination metadata."""

    entries: List[MessageView] = field(default_factory=list)
    pagination: Optional[Pagination] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "pagination": asdict(self.pagination) if self.pagination else None,
        }
