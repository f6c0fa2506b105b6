from __future__ import annotations

from datetime import datetime, timezone

from adapters.feed_formatting import (
    clip,
    format_author,
    format_entry,
    format_pagination,
    page_numbers,
    reply_context,
)
from core.feed import build_pagination
from core.models import MessageView


def _view(**overrides) -> MessageView:
    values = dict(
        id="m1",
        text="hello",
        created_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        author_label="alice",
        author_id="u1",
        reply_to_id=None,
        reply_to_text=None,
        reply_to_author_label=None,
        is_creator=False,
    )
    values.update(overrides)
    return MessageView(**values)


def test_format_author() -> None:
    assert format_author(_view()) == "alice"
    assert format_author(_view(is_creator=True)) == "alice ★"
    assert format_author(_view(author_label="")) == "anonymous"


def test_reply_context() -> None:
    assert reply_context(_view()) is None
    reply = _view(reply_to_id="m0", reply_to_text="the parent", reply_to_author_label="bob")
    assert reply_context(reply) == "↪ replying to bob: the parent"
    orphan = _view(reply_to_id="gone")
    assert "no longer available" in reply_context(orphan)


def test_clip() -> None:
    assert clip("short", 10) == "short"
    assert clip("a  b\nc", 10) == "a b c"
    assert clip("abcdefghij", 5) == "abcd…"


def test_format_entry_includes_reply_context() -> None:
    reply = _view(reply_to_id="m0", reply_to_text="parent", reply_to_author_label="bob", text="one\ntwo")
    lines = format_entry(reply).split("\n")
    assert lines[0].endswith("alice  #m1")
    assert lines[1] == "  ↪ replying to bob: parent"
    assert lines[2:] == ["  one", "  two"]


def test_format_pagination() -> None:
    assert format_pagination(build_pagination(1, 50, 0)) == "page 1/1 · 0 messages"
    assert format_pagination(build_pagination(2, 10, 21), visible=8) == "page 2/3 · 21 messages · 8 shown"


def test_page_numbers() -> None:
    assert page_numbers(1, 0) == []
    assert page_numbers(1, 3) == [1, 2, 3]
    assert page_numbers(5, 10) == [1, None, 4, 5, 6, None, 10]
    assert page_numbers(1, 10) == [1, 2, None, 10]
