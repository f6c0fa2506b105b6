"""Reply parent resolution (core domain)."""

from __future__ import annotations

from typing import Optional

from core.models import ResolvedParent
from core.ports import MessageStorePort


class ReplyResolver:
    """Looks up the immediate parent of a reply.

    Only the direct parent is resolved: a reply to a reply shows the text
    and author of the message it answered, not the root of the thread.
    """

    def __init__(self, messages: MessageStorePort) -> None:
        self._messages = messages

    def resolve(self, reply_to_id: str) -> Optional[ResolvedParent]:
        parent = self._messages.get_message(reply_to_id)
        if parent is None:
            return None
        return ResolvedParent(text=parent.text, author_label=parent.author_label)
