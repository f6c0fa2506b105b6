"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#14B8A6"
CREATOR_STYLE = "bold #EC4899"
MUTED_STYLE = "#8A9BA8"
SNIPPET_CHARS = 70
