from __future__ import annotations

import pytest

from core.usernames import sanitize_username, validate_username


def test_sanitize_username() -> None:
    assert sanitize_username("  @Alice_1 ") == "alice_1"
    assert sanitize_username(None) == ""


def test_valid_username_returns_sanitized_form() -> None:
    check = validate_username("Alice_1")
    assert check.is_valid
    assert check.sanitized == "alice_1"
    assert check.error is None


@pytest.mark.parametrize(
    "value, fragment",
    [
        ("", "required"),
        ("ab", "at least"),
        ("a" * 21, "at most"),
        ("al ice", "letters, numbers"),
        ("alice!", "letters, numbers"),
        ("_alice", "underscore"),
        ("admin", "reserved"),
    ],
)
def test_invalid_usernames(value: str, fragment: str) -> None:
    check = validate_username(value)
    assert not check.is_valid
    assert check.sanitized is None
    assert fragment in check.error
