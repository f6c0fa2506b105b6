from __future__ import annotations

from core.feed import FeedComposer
from core.guestbook import GuestbookService
from core.models import Author
from core.replies import ReplyResolver
from frontend.state import BrowserState

from fakes import FakeCodes, FakeMessageStore, FakePreferenceStore


def _state(total: int, page: int = 1) -> BrowserState:
    store = FakeMessageStore(
        authors={"u1": Author(id="u1", username="alice"), "u2": Author(id="u2", username="bob")}
    )
    for index in range(total):
        store.add(f"message {index}", "u1" if index % 2 else "u2")
    composer = FeedComposer(store, ReplyResolver(store), None)
    return BrowserState(page=page, feed=composer.compose_page(page, 2))


def test_navigation_flags() -> None:
    assert not BrowserState().can_go_next
    first = _state(5)
    assert first.can_go_next and not first.can_go_prev
    last = _state(5, page=3)
    assert last.can_go_prev and not last.can_go_next


def test_hidden_entries_are_not_selectable() -> None:
    state = _state(2)
    state.ignored = ["alice"]

    assert [entry.author_label for entry in state.visible_entries] == ["bob"]
    assert state.entry("m2") is None

    state.show_ignored = True
    assert state.entry("m2") is not None


def test_author_timeline_toggle() -> None:
    store = FakeMessageStore(
        authors={"u1": Author(id="u1", username="alice"), "u2": Author(id="u2", username="bob")}
    )
    for index in range(4):
        store.add(f"message {index}", "u1" if index % 2 else "u2")
    service = GuestbookService(messages=store, preferences=FakePreferenceStore(), codes=FakeCodes())
    state = BrowserState(page=2, feed=service.get_feed_page(1, 10))

    state.toggle_author(state.entry("m2"))
    assert (state.author_id, state.author_label, state.page) == ("u1", "alice", 1)
    state.feed = service.get_author_posts(state.author_id, state.page, 10)
    assert [entry.id for entry in state.visible_entries] == ["m4", "m2"]

    state.toggle_author(None)
    assert state.author_id is None and state.author_label is None
