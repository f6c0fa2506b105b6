from __future__ import annotations

import pytest

from core.errors import Unauthenticated, VerificationCodeInvalid
from core.verification import (
    UNVERIFIED,
    VerificationGate,
    VerificationState,
    on_code_rejected,
    on_code_requested,
)

from fakes import FakeCodes, make_session


def test_can_post_only_when_verified() -> None:
    assert VerificationGate.can_post(make_session(verified=True))
    assert not VerificationGate.can_post(make_session(verified=False))
    assert not VerificationGate.can_post(None)


def test_new_unverified_session_is_pending_from_signup() -> None:
    status = VerificationGate.status_for(make_session(verified=False))
    assert status.state is VerificationState.PENDING
    assert status.code_sent_during_signup
    assert "during signup" in status.prompt


def test_no_session_is_unverified() -> None:
    assert VerificationGate.status_for(None) is UNVERIFIED


def test_request_code_moves_unverified_to_pending() -> None:
    codes = FakeCodes()
    gate = VerificationGate(codes)
    session = make_session(verified=False)

    status = gate.request_code(session, UNVERIFIED)

    assert status.state is VerificationState.PENDING
    assert not status.code_sent_during_signup
    assert codes.sent == ["u1@example.com"]


def test_resend_keeps_pending() -> None:
    codes = FakeCodes()
    gate = VerificationGate(codes)
    session = make_session(verified=False)
    status = gate.status_for(session)

    status = gate.request_code(session, status)
    status = gate.request_code(session, status)

    assert status.state is VerificationState.PENDING
    assert len(codes.sent) == 2


def test_request_code_when_verified_sends_nothing() -> None:
    codes = FakeCodes()
    status = VerificationGate(codes).request_code(make_session(verified=True))
    assert status.state is VerificationState.VERIFIED
    assert codes.sent == []


def test_correct_code_verifies() -> None:
    gate = VerificationGate(FakeCodes(valid_code="424242"))
    status = gate.submit_code(make_session(verified=False), " 424242 ")
    assert status.state is VerificationState.VERIFIED


def test_wrong_code_raises_and_state_is_unchanged() -> None:
    gate = VerificationGate(FakeCodes(valid_code="424242"))
    session = make_session(verified=False)
    before = gate.status_for(session)

    with pytest.raises(VerificationCodeInvalid):
        gate.submit_code(session, "000000", before)

    after = on_code_rejected(before, "Invalid verification code")
    assert after.state is before.state
    assert after.error == "Invalid verification code"


def test_blank_code_is_rejected_without_calling_issuer() -> None:
    codes = FakeCodes()
    with pytest.raises(VerificationCodeInvalid):
        VerificationGate(codes).submit_code(make_session(verified=False), "   ")
    assert codes.checked == []


def test_verified_is_terminal() -> None:
    verified = VerificationGate(FakeCodes()).submit_code(make_session(verified=False), "123456")
    assert on_code_requested(verified) is verified


def test_flow_requires_session() -> None:
    gate = VerificationGate(FakeCodes())
    with pytest.raises(Unauthenticated):
        gate.request_code(None)
    with pytest.raises(Unauthenticated):
        gate.submit_code(None, "123456")
