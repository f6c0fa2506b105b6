"""Ports (interfaces) used by the guestbook core.

Ports define the minimal contracts for storage and identity adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.models import NewMessage, StoredMessage


class MessageStorePort(Protocol):
    """Append-only message persistence.

    Listing is ordered by creation time, newest first. ``insert_message``
    is atomic and assigns the id and a non-decreasing creation timestamp.
    """

    def insert_message(self, message: NewMessage) -> StoredMessage:
        ...

    def get_message(self, message_id: str) -> Optional[StoredMessage]:
        ...

    def list_messages(
        self, offset: int, limit: int, author_id: Optional[str] = None
    ) -> List[StoredMessage]:
        ...

    def count_messages(self, author_id: Optional[str] = None) -> int:
        ...


class PreferenceStorePort(Protocol):
    """Per-viewer ignore list persistence."""

    def get_ignored(self, viewer_id: str) -> List[str]:
        ...

    def set_ignored(self, viewer_id: str, labels: List[str]) -> None:
        ...


class VerificationCodePort(Protocol):
    """External OTP issuer: generates, delivers, and checks codes."""

    def send_code(self, email: str) -> None:
        ...

    def verify_code(self, email: str, code: str) -> bool:
        ...
