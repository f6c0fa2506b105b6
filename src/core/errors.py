"""Error taxonomy for the guestbook core.

Every error is raised synchronously to the caller; nothing in the core
retries.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from core.content_validation import RejectionReason


class GuestbookError(Exception):
    """Base class for all errors surfaced by the guestbook core."""


class Unauthenticated(GuestbookError):
    def __init__(self, message: str = "You must be signed in to post a message") -> None:
        super().__init__(message)


class NotVerified(GuestbookError):
    """Session is valid but the identity has not verified its email yet."""

    def __init__(self, message: str = "Please verify your email to start posting messages") -> None:
        super().__init__(message)


class ValidationFailed(GuestbookError):
    """Message text broke one or more content rules."""

    def __init__(self, reasons: Iterable[RejectionReason]) -> None:
        self.reasons: Tuple[RejectionReason, ...] = tuple(reasons)
        super().__init__(", ".join(reason.message for reason in self.reasons))


class VerificationCodeInvalid(GuestbookError):
    def __init__(self, message: str = "Invalid verification code") -> None:
        super().__init__(message)


class VerificationDeliveryFailed(GuestbookError):
    def __init__(self, message: str = "Failed to send verification code") -> None:
        super().__init__(message)


class NotFound(GuestbookError):
    pass


class StorageError(GuestbookError):
    """Persistence layer failure, propagated unchanged to the caller."""


class InvalidUsername(GuestbookError):
    """Requested username breaks the sign-up rules."""
