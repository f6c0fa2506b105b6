"""Shared feed formatting helpers.

Keeping formatting here prevents drift between the CLI and the TUI and keeps
entries consistent regardless of front end.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from core.models import MessageView, Pagination

ANONYMOUS = "anonymous"
DIVIDER = "──────────────"


def format_timestamp(value: datetime) -> str:
    return value.astimezone().strftime("%H:%M:%S %d-%m-%Y").strip()


def format_author(entry: MessageView) -> str:
    """Return the author label with a creator marker when flagged."""

    label = entry.author_label or ANONYMOUS
    if entry.is_creator:
        return f"{label} ★"
    return label


def clip(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: max(limit - 1, 0)].rstrip() + "…"


def reply_context(entry: MessageView, snippet_chars: int = 80) -> Optional[str]:
    """One-line description of what a reply answers, None for root messages."""

    if not entry.is_reply:
        return None
    if entry.reply_to_text is None:
        return "↪ replying to a message that is no longer available"
    parent_author = entry.reply_to_author_label or ANONYMOUS
    return f"↪ replying to {parent_author}: {clip(entry.reply_to_text, snippet_chars)}"


def format_entry(entry: MessageView, snippet_chars: int = 80) -> str:
    lines = [f"[{format_timestamp(entry.created_at)}] {format_author(entry)}  #{entry.id}"]
    context = reply_context(entry, snippet_chars)
    if context:
        lines.append(f"  {context}")
    lines.extend(f"  {line}" for line in entry.text.split("\n"))
    return "\n".join(lines)


def format_pagination(pagination: Pagination, visible: Optional[int] = None) -> str:
    parts = [
        f"page {pagination.page}/{max(pagination.total_pages, 1)}",
        f"{pagination.total} message{'s' if pagination.total != 1 else ''}",
    ]
    if visible is not None:
        parts.append(f"{visible} shown")
    return " · ".join(parts)


def page_numbers(current: int, total_pages: int) -> List[Optional[int]]:
    """Page buttons to show: first, last, and neighbours of the current page.

    ``None`` marks a gap that should be rendered as an ellipsis.
    """

    visible = [
        page
        for page in range(1, total_pages + 1)
        if page == 1 or page == total_pages or abs(page - current) <= 1
    ]
    result: List[Optional[int]] = []
    for index, page in enumerate(visible):
        if index > 0 and visible[index - 1] != page - 1:
            result.append(None)
        result.append(page)
    return result
