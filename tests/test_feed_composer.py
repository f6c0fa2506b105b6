from __future__ import annotations

import math

import pytest

from core.feed import FeedComposer, apply_ignore_list, build_pagination, toggle_ignored
from core.models import Author
from core.replies import ReplyResolver

from fakes import FakeMessageStore


def _store() -> FakeMessageStore:
    return FakeMessageStore(
        authors={
            "u1": Author(id="u1", username="alice"),
            "u2": Author(id="u2", display_username="Bob", username="bob"),
            "u3": Author(id="u3", name="Carol Real"),
        }
    )


def _composer(store: FakeMessageStore, creator: str | None = None) -> FeedComposer:
    return FeedComposer(store, ReplyResolver(store), creator_label=creator)


def test_newest_first_with_replies_interleaved() -> None:
    store = _store()
    store.add("first", "u1", message_id="a")
    store.add("second", "u2", message_id="b")
    store.add("reply to first", "u3", reply_to_id="a", message_id="c")
    store.add("third", "u1", message_id="d")

    page = _composer(store).compose_page(1, 10)

    assert [entry.id for entry in page.entries] == ["d", "c", "b", "a"]


def test_reply_gets_immediate_parent_only() -> None:
    store = _store()
    store.add("root", "u1", message_id="a")
    store.add("child", "u2", reply_to_id="a", message_id="b")
    store.add("grandchild", "u3", reply_to_id="b", message_id="c")

    entries = {entry.id: entry for entry in _composer(store).compose_page(1, 10).entries}

    assert entries["c"].reply_to_text == "child"
    assert entries["c"].reply_to_author_label == "Bob"
    assert entries["b"].reply_to_text == "root"
    assert entries["b"].reply_to_author_label == "alice"
    assert entries["a"].reply_to_id is None
    assert entries["a"].reply_to_text is None


def test_missing_parent_degrades_but_keeps_entry() -> None:
    store = _store()
    store.add("orphan", "u1", reply_to_id="gone", message_id="a")

    page = _composer(store).compose_page(1, 10)

    assert len(page.entries) == 1
    entry = page.entries[0]
    assert entry.is_reply
    assert entry.reply_to_id == "gone"
    assert entry.reply_to_text is None
    assert entry.reply_to_author_label is None


def test_one_parent_lookup_per_reply_on_page() -> None:
    store = _store()
    store.add("root", "u1", message_id="a")
    for index in range(3):
        store.add(f"reply {index}", "u2", reply_to_id="a")
    store.lookups.clear()

    _composer(store).compose_page(1, 10)

    assert store.lookups == ["a", "a", "a"]


def test_pagination_metadata() -> None:
    store = _store()
    for index in range(7):
        store.add(f"message {index}", "u1")
    composer = _composer(store)

    first = composer.compose_page(1, 3)
    last = composer.compose_page(3, 3)
    beyond = composer.compose_page(5, 3)

    assert len(first.entries) == 3
    assert first.pagination.total == 7
    assert first.pagination.total_pages == math.ceil(7 / 3)
    assert first.pagination.has_next and not first.pagination.has_prev
    assert len(last.entries) == 1
    assert last.pagination.has_prev and not last.pagination.has_next
    assert beyond.entries == []
    assert beyond.pagination.has_prev


def test_empty_feed_has_zero_pages() -> None:
    pagination = _composer(_store()).compose_page(1, 50).pagination
    assert pagination.total == 0
    assert pagination.total_pages == 0
    assert not pagination.has_next
    assert not pagination.has_prev


def test_build_pagination_exact_multiple() -> None:
    pagination = build_pagination(page=2, page_size=5, total=10)
    assert pagination.total_pages == 2
    assert not pagination.has_next


@pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (-1, 5)])
def test_rejects_invalid_page_requests(page: int, size: int) -> None:
    with pytest.raises(ValueError):
        _composer(_store()).compose_page(page, size)


def test_creator_flag_is_case_insensitive_on_resolved_label() -> None:
    store = _store()
    store.add("hi", "u2", message_id="a")
    store.add("hey", "u1", message_id="b")

    entries = {e.id: e for e in _composer(store, creator="bob").compose_page(1, 10).entries}

    assert entries["a"].is_creator
    assert not entries["b"].is_creator


def test_no_creator_configured_flags_nobody() -> None:
    store = _store()
    store.add("hi", "u2")
    assert not _composer(store).compose_page(1, 10).entries[0].is_creator


def test_repeated_reads_are_identical() -> None:
    store = _store()
    for index in range(5):
        store.add(f"message {index}", "u1")
    composer = _composer(store)

    first = [entry.id for entry in composer.compose_page(1, 3).entries]
    second = [entry.id for entry in composer.compose_page(1, 3).entries]

    assert first == second


def test_author_page_counts_only_that_author() -> None:
    store = _store()
    store.add("a1", "u1")
    store.add("b1", "u2")
    store.add("a2", "u1")

    page = _composer(store).compose_author_page("u1", 1, 10)

    assert [entry.text for entry in page.entries] == ["a2", "a1"]
    assert page.pagination.total == 2


def test_ignore_filter_keeps_pagination_totals() -> None:
    store = _store()
    store.add("from alice", "u1", message_id="a")
    store.add("from bob", "u2", message_id="b")

    page = _composer(store).compose_page(1, 10)
    visible = apply_ignore_list(page.entries, ["alice"])

    assert [entry.id for entry in visible] == ["b"]
    assert page.pagination.total == 2
    assert len(apply_ignore_list(page.entries, ["alice"], show_ignored=True)) == 2


def test_ignore_filter_never_hides_unlabelled_entries() -> None:
    store = _store()
    store.add("ghost", "nobody")
    entries = _composer(store).compose_page(1, 10).entries
    assert apply_ignore_list(entries, [""]) == entries


def test_toggle_ignored() -> None:
    assert toggle_ignored([], "alice") == ["alice"]
    assert toggle_ignored(["alice", "bob"], "alice") == ["bob"]
    assert toggle_ignored(["bob"], "alice") == ["bob", "alice"]
