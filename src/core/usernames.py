"""Username rules applied at sign-up (core domain)."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Optional

MIN_LENGTH = 3
MAX_LENGTH = 20

_ALLOWED = re.compile(r"^[a-z0-9_]+$")
_RESERVED = frozenset({"admin", "administrator", "anonymous", "moderator", "root", "system"})


@dataclass(frozen=True)
class UsernameCheck:
    is_valid: bool
    sanitized: Optional[str] = None
    error: Optional[str] = None


def sanitize_username(value: str) -> str:
    """Trim, lowercase and drop a leading @."""

    return (value or "").strip().lstrip("@").lower()


def validate_username(value: str) -> UsernameCheck:
    username = sanitize_username(value)
    if not username:
        return UsernameCheck(False, error="Username is required")
    if len(username) < MIN_LENGTH:
        return UsernameCheck(False, error=f"Username must be at least {MIN_LENGTH} characters")
    if len(username) > MAX_LENGTH:
        return UsernameCheck(False, error=f"Username must be at most {MAX_LENGTH} characters")
    if not _ALLOWED.match(username):
        return UsernameCheck(
            False, error="Username can only contain letters, numbers, and underscores"
        )
    if username.startswith("_") or username.endswith("_"):
        return UsernameCheck(False, error="Username cannot start or end with an underscore")
    if username in _RESERVED:
        return UsernameCheck(False, error="This username is reserved")
    return UsernameCheck(True, sanitized=username)
