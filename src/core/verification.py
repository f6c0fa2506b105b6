"""Email verification gate (core domain).

The verification flow is a small state machine over a tagged status value:

    unverified -> verification-pending -> verified

Session establishment with an unverified identity moves straight to
pending, since the sign-up flow already sent a code. A rejected code leaves
the state unchanged and records the error. ``verified`` is terminal.

Write access is decided only by ``can_post``, which reads the identity's
verification flag from the session on every call; the status value exists to
drive prompts in a front end and is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import logging
from typing import Optional

from core.errors import Unauthenticated, VerificationCodeInvalid
from core.models import Session
from core.ports import VerificationCodePort

LOGGER = logging.getLogger(__name__)


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "verification-pending"
    VERIFIED = "verified"


@dataclass(frozen=True)
class VerificationStatus:
    state: VerificationState
    code_sent_during_signup: bool = False
    error: Optional[str] = None

    @property
    def prompt(self) -> str:
        """Human-readable hint for the current state."""

        if self.state is VerificationState.VERIFIED:
            return "Email verified"
        if self.state is VerificationState.PENDING:
            if self.code_sent_during_signup:
                return "We sent a verification code to your email during signup"
            return "Enter the verification code from your email"
        return "Verify your email address to start posting messages"


UNVERIFIED = VerificationStatus(VerificationState.UNVERIFIED)


def on_session_established(session: Session) -> VerificationStatus:
    if session.identity.email_verified:
        return VerificationStatus(VerificationState.VERIFIED)
    return VerificationStatus(VerificationState.PENDING, code_sent_during_signup=True)


def on_code_requested(status: VerificationStatus) -> VerificationStatus:
    if status.state is VerificationState.VERIFIED:
        return status
    return VerificationStatus(VerificationState.PENDING, code_sent_during_signup=False)


def on_code_accepted(status: VerificationStatus) -> VerificationStatus:
    return VerificationStatus(VerificationState.VERIFIED)


def on_code_rejected(status: VerificationStatus, error: str) -> VerificationStatus:
    return replace(status, error=error)


class VerificationGate:
    """Gates write access and drives the code request/submit flow."""

    def __init__(self, codes: VerificationCodePort) -> None:
        self._codes = codes

    @staticmethod
    def can_post(session: Optional[Session]) -> bool:
        return session is not None and session.identity.email_verified

    @staticmethod
    def status_for(session: Optional[Session]) -> VerificationStatus:
        if session is None:
            return UNVERIFIED
        return on_session_established(session)

    def request_code(
        self, session: Optional[Session], status: Optional[VerificationStatus] = None
    ) -> VerificationStatus:
        """Send a fresh code; allowed in any state except verified."""

        if session is None:
            raise Unauthenticated("You must be signed in to verify your email")
        status = status or self.status_for(session)
        if status.state is VerificationState.VERIFIED or session.identity.email_verified:
            LOGGER.info("Code request ignored for %s (already verified)", session.identity.id)
            return on_code_accepted(status)

        # Issuers raise VerificationDeliveryFailed themselves when sending fails.
        self._codes.send_code(session.identity.email)
        LOGGER.info("Verification code sent for %s", session.identity.id)
        return on_code_requested(status)

    def submit_code(
        self,
        session: Optional[Session],
        code: str,
        status: Optional[VerificationStatus] = None,
    ) -> VerificationStatus:
        """Check a code; raises VerificationCodeInvalid when it is rejected.

        The caller holds an immutable session, so after success it must
        re-fetch the session before ``can_post`` reflects the new flag.
        """

        if session is None:
            raise Unauthenticated("You must be signed in to verify your email")
        status = status or self.status_for(session)
        if status.state is VerificationState.VERIFIED:
            return status

        code = (code or "").strip()
        if not code:
            raise VerificationCodeInvalid("Verification code is required")

        if not self._codes.verify_code(session.identity.email, code):
            LOGGER.info("Verification code rejected for %s", session.identity.id)
            raise VerificationCodeInvalid()

        LOGGER.info("Email verified for %s", session.identity.id)
        return on_code_accepted(status)
