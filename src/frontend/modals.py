"""Modal dialogs for the feed browser."""

from __future__ import annotations

from typing import Optional

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class ComposeScreen(ModalScreen[Optional[str]]):
    """Form for a new message or a reply; dismisses with the text or None."""

    def __init__(self, title: str, context: Optional[str], max_length: int) -> None:
        super().__init__()
        self._title = title
        self._context = context
        self._max_length = max_length

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self._title, classes="modal-title"),
            Static(self._context or "", classes="modal-body"),
            Input(
                placeholder=f"Up to {self._max_length} characters",
                id="compose-text",
            ),
            Static("", id="compose-count", classes="subtle"),
            Horizontal(
                Button("Post", id="compose-post", variant="success"),
                Button("Cancel", id="compose-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog",
        )

    def on_input_changed(self, event: Input.Changed) -> None:
        count = self.query_one("#compose-count", Static)
        count.update(f"{len(event.value)}/{self._max_length}")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "compose-post":
            self.dismiss(self.query_one("#compose-text", Input).value)
        else:
            self.dismiss(None)


class VerifyCodeScreen(ModalScreen[Optional[tuple[str, str]]]):
    """Prompt for an email code.

    Dismisses with ("submit", code), ("resend", ""), or None on cancel.
    """

    def __init__(self, prompt: str, error: Optional[str] = None) -> None:
        super().__init__()
        self._prompt = prompt
        self._error = error

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Please verify your email", classes="modal-title"),
            Static(self._prompt, classes="modal-body"),
            Static(self._error or "", id="verify-error", classes="modal-error"),
            Input(placeholder="Enter 6-digit code", id="verify-code", max_length=6),
            Horizontal(
                Button("Verify", id="verify-submit", variant="success"),
                Button("Resend code", id="verify-resend"),
                Button("Cancel", id="verify-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog",
        )

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(("submit", event.value))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "verify-submit":
            self.dismiss(("submit", self.query_one("#verify-code", Input).value))
        elif event.button.id == "verify-resend":
            self.dismiss(("resend", ""))
        else:
            self.dismiss(None)
