"""Main Textual app for browsing the guestbook feed."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import DataTable, Footer, Static

from adapters.feed_formatting import (
    ANONYMOUS,
    clip,
    format_pagination,
    format_timestamp,
    page_numbers,
    reply_context,
)
from adapters.local_identity import LocalSessionProvider
from core.errors import GuestbookError
from core.guestbook import GuestbookService
from core.models import MessageView
from core.verification import VerificationState, on_code_rejected

from .constants import ACCENT, CREATOR_STYLE, MUTED_STYLE, SNIPPET_CHARS
from .modals import ComposeScreen, VerifyCodeScreen
from .state import BrowserState


class FeedBrowserApp(App):
    """Paginated feed with ignore list, posting, and email verification."""

    BINDINGS = [
        ("n", "next_page", "Next"),
        ("p", "prev_page", "Prev"),
        ("r", "refresh", "Refresh"),
        ("h", "toggle_show_ignored", "Show/hide ignored"),
        ("i", "toggle_ignore", "Ignore author"),
        ("c", "compose", "New message"),
        ("a", "reply", "Reply"),
        ("t", "author_posts", "Author posts"),
        ("v", "verify", "Verify email"),
        ("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: #0b1f1e;
        color: #e8eef5;
    }

    #header {
        height: 5;
        padding: 1 2;
        border-bottom: solid #1f3a38;
    }

    #header-left, #header-right {
        width: 1fr;
    }

    #header-right {
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #8a9ba8;
    }

    #feed {
        height: 1fr;
    }

    #detail {
        height: 7;
        padding: 0 2;
        border-top: solid #1f3a38;
    }

    #pager {
        height: 1;
        padding: 0 2;
    }

    .status-error {
        color: #f87171;
    }

    .modal-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        border: round #14b8a6;
        background: #0f2927;
    }

    .modal-title {
        text-style: bold;
    }

    .modal-error {
        color: #f87171;
    }

    .modal-actions {
        height: 3;
    }

    ComposeScreen, VerifyCodeScreen {
        align: center middle;
    }
    """

    def __init__(
        self,
        service: GuestbookService,
        sessions: LocalSessionProvider,
        viewer_id: Optional[str] = None,
        page_size: int = 50,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._service = service
        self._sessions = sessions
        self._viewer_id = viewer_id
        self._page_size = page_size
        self.browser_state = BrowserState()

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal():
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static("", id="viewer", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static("", id="verification", classes="subtle")
                    yield Static("", id="header-status")
        yield DataTable(id="feed", cursor_type="row")
        yield Static("", id="detail")
        yield Static("", id="pager", classes="subtle")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#feed", DataTable)
        table.add_column("time", key="time", width=19)
        table.add_column("author", key="author", width=18)
        table.add_column("message", key="message")
        table.zebra_stripes = True
        self._load_session()
        self._reload()

    # Data loading

    def _load_session(self) -> None:
        state = self.browser_state
        state.session = self._sessions.get_session(self._viewer_id)
        if state.verification.state is not VerificationState.VERIFIED:
            state.verification = self._service.verification_status(state.session)

    def _reload(self) -> None:
        """Fetch the current page and ignore list again.

        Called after every successful write, since earlier snapshots are stale.
        """

        state = self.browser_state
        try:
            if state.author_id is not None:
                state.feed = self._service.get_author_posts(
                    state.author_id, state.page, self._page_size
                )
            else:
                state.feed = self._service.get_feed_page(state.page, self._page_size)
            if self._viewer_id:
                state.ignored = self._service.get_ignore_list(self._viewer_id)
            state.error = None
        except GuestbookError as exc:
            state.error = str(exc)
        self._render_all()

    # Rendering

    def _render_all(self) -> None:
        self._render_header()
        self._render_table()
        self._render_pager()

    def _render_header(self) -> None:
        state = self.browser_state
        viewer = self.query_one("#viewer", Static)
        if state.session:
            viewer.update(Text(f"signed in as {state.session.identity.label or state.session.identity.id}"))
        else:
            viewer.update("read-only (no session)")

        verification = self.query_one("#verification", Static)
        verification.update(state.verification.prompt if state.session else "")

        status = self.query_one("#header-status", Static)
        status.remove_class("status-error")
        if state.error:
            status.update(Text(state.error))
            status.add_class("status-error")
        elif state.author_id is not None:
            status.update(Text(f"posts by {state.author_label or ANONYMOUS} (t for the whole feed)"))
        elif state.ignored:
            count = len(state.ignored)
            suffix = "shown" if state.show_ignored else "hidden"
            status.update(f"{count} user{'' if count == 1 else 's'} ignored ({suffix})")
        else:
            status.update("")

    def _render_table(self) -> None:
        table = self.query_one("#feed", DataTable)
        table.clear()
        for entry in self.browser_state.visible_entries:
            table.add_row(
                format_timestamp(entry.created_at),
                self._author_cell(entry),
                self._message_cell(entry),
                key=entry.id,
            )
        self._render_detail(self._highlighted_entry())

    def _render_pager(self) -> None:
        state = self.browser_state
        pager = self.query_one("#pager", Static)
        if state.feed is None or state.feed.pagination is None:
            pager.update("")
            return
        pagination = state.feed.pagination
        buttons = []
        for number in page_numbers(pagination.page, pagination.total_pages):
            if number is None:
                buttons.append("…")
            elif number == pagination.page:
                buttons.append(f"[{number}]")
            else:
                buttons.append(str(number))
        summary = format_pagination(pagination, visible=len(state.visible_entries))
        pager.update(Text(f"{summary}    {' '.join(buttons)}"))

    def _render_detail(self, entry: Optional[MessageView]) -> None:
        detail = self.query_one("#detail", Static)
        if entry is None:
            detail.update(Text("No messages yet. Be the first to leave one!", style=MUTED_STYLE))
            return
        body = Text()
        body.append(entry.author_label or ANONYMOUS, style=CREATOR_STYLE if entry.is_creator else "bold")
        if entry.author_label in self.browser_state.ignored:
            body.append("  (ignored)", style=MUTED_STYLE)
        body.append("\n")
        context = reply_context(entry, SNIPPET_CHARS)
        if context:
            body.append(context + "\n", style=MUTED_STYLE)
        body.append(entry.text)
        detail.update(body)

    @staticmethod
    def _author_cell(entry: MessageView) -> Text:
        label = entry.author_label or ANONYMOUS
        if entry.is_creator:
            return Text(f"{label} ★", style=CREATOR_STYLE)
        return Text(label)

    @staticmethod
    def _message_cell(entry: MessageView) -> Text:
        if entry.is_reply:
            return Text.assemble(("↪ ", MUTED_STYLE), clip(entry.text, SNIPPET_CHARS))
        return Text(clip(entry.text, SNIPPET_CHARS))

    def _highlighted_entry(self) -> Optional[MessageView]:
        table = self.query_one("#feed", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        return self.browser_state.entry(str(row_key.value))

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self._render_detail(self.browser_state.entry(str(event.row_key.value)))

    def _set_error(self, message: str) -> None:
        self.browser_state.error = message
        self._render_header()

    # Actions

    def action_next_page(self) -> None:
        if self.browser_state.can_go_next:
            self.browser_state.page += 1
            self._reload()

    def action_prev_page(self) -> None:
        if self.browser_state.can_go_prev:
            self.browser_state.page -= 1
            self._reload()

    def action_refresh(self) -> None:
        self._reload()

    def action_toggle_show_ignored(self) -> None:
        self.browser_state.show_ignored = not self.browser_state.show_ignored
        self._render_all()

    def action_toggle_ignore(self) -> None:
        entry = self._highlighted_entry()
        if entry is None or not entry.author_label:
            return
        if not self._viewer_id:
            self._set_error("Sign in to ignore users")
            return
        try:
            self._service.toggle_ignored(self._viewer_id, entry.author_label)
        except GuestbookError as exc:
            self._set_error(str(exc))
            return
        self._reload()

    def action_author_posts(self) -> None:
        state = self.browser_state
        entry = self._highlighted_entry()
        if state.author_id is None and entry is None:
            return
        state.toggle_author(entry)
        self._reload()

    def action_compose(self) -> None:
        self._open_compose(None)

    def action_reply(self) -> None:
        entry = self._highlighted_entry()
        if entry is not None:
            self._open_compose(entry)

    def _open_compose(self, parent: Optional[MessageView]) -> None:
        state = self.browser_state
        if not self._service.gate.can_post(state.session):
            if state.session is None:
                self._set_error("Sign in to post messages")
            else:
                self.action_verify()
            return

        limits = self._service.limits
        if parent is None:
            title, context, max_length = "New message", None, limits.root_max_length
        else:
            title = f"Reply to {parent.author_label or ANONYMOUS}"
            context = clip(parent.text, SNIPPET_CHARS)
            max_length = limits.reply_max_length

        def _submit(text: Optional[str]) -> None:
            if text is None:
                return
            try:
                self._service.post_message(
                    state.session, text, reply_to_id=parent.id if parent else None
                )
            except GuestbookError as exc:
                self._set_error(str(exc))
                return
            state.page = 1
            self._reload()

        self.push_screen(ComposeScreen(title, context, max_length), _submit)

    def action_verify(self) -> None:
        state = self.browser_state
        if state.session is None:
            self._set_error("Sign in to verify your email")
            return
        if state.verification.state is VerificationState.VERIFIED:
            return
        self.push_screen(
            VerifyCodeScreen(state.verification.prompt, state.verification.error),
            self._handle_verify_choice,
        )

    def _handle_verify_choice(self, choice: Optional[tuple[str, str]]) -> None:
        state = self.browser_state
        if choice is None:
            return
        action, code = choice
        try:
            if action == "resend":
                state.verification = self._service.request_verification_code(
                    state.session, state.verification
                )
            else:
                state.verification = self._service.submit_verification_code(
                    state.session, code, state.verification
                )
        except GuestbookError as exc:
            state.verification = on_code_rejected(state.verification, str(exc))
            self._render_header()
            self.action_verify()
            return

        if state.verification.state is VerificationState.VERIFIED:
            # The session snapshot predates verification; fetch it again.
            self._load_session()
            self._render_header()
        else:
            self.action_verify()

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("GUEST", ACCENT),
            ("BOOK > Feed", "bold"),
        )
