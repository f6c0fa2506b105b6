"""Local identity adapter.

Stands in for the external identity provider during development: sessions
are looked up from the author directory, and verification codes are
generated locally and "delivered" through the log. Production deployments
swap both for the real provider without touching the core.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from adapters.sqlite_storage import SQLiteStorage
from core.config import VerificationConfig
from core.errors import InvalidUsername, VerificationDeliveryFailed
from core.models import Identity, Session
from core.ports import VerificationCodePort
from core.usernames import validate_username

LOGGER = logging.getLogger(__name__)


def _hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


class LocalSessionProvider:
    """Builds sessions from the author directory."""

    def __init__(self, storage: SQLiteStorage, codes: VerificationCodePort) -> None:
        self._storage = storage
        self._codes = codes

    def get_session(self, author_id: Optional[str]) -> Optional[Session]:
        if not author_id:
            return None
        identity = self._storage.get_identity(author_id)
        if identity is None:
            return None
        return Session(identity=identity)

    def register(self, identity: Identity) -> Session:
        """Create or refresh an author and return a session for it.

        The username is validated and stored sanitized. Unverified identities
        are sent a code here, which the "sent during signup" prompt relies on.
        """

        if identity.username is not None:
            check = validate_username(identity.username)
            if not check.is_valid:
                raise InvalidUsername(check.error)
            identity = replace(identity, username=check.sanitized)

        self._storage.upsert_author(identity)
        if not identity.email_verified:
            self._codes.send_code(identity.email)
            LOGGER.info("Sign-up code sent for %s", identity.id)
        return Session(identity=identity)


class LocalCodeIssuer:
    """Development VerificationCodePort backed by SQLite.

    Codes are numeric, single-use, expire after ``ttl_minutes`` and are
    invalidated after ``max_attempts`` wrong submissions.
    """

    def __init__(self, storage: SQLiteStorage, config: Optional[VerificationConfig] = None) -> None:
        self._storage = storage
        self._config = config or VerificationConfig()

    def _generate(self) -> str:
        return "".join(secrets.choice("0123456789") for _ in range(self._config.code_length))

    def send_code(self, email: str) -> None:
        if not email:
            raise VerificationDeliveryFailed("No email address on this account")
        code = self._generate()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self._config.ttl_minutes)
        self._storage.save_code(email, _hash_code(code), expires_at)
        # Local delivery: the code goes to the log instead of an inbox.
        LOGGER.info("Verification code for %s: %s", email, code)

    def verify_code(self, email: str, code: str) -> bool:
        stored = self._storage.get_code(email)
        if stored is None:
            return False

        code_hash, expires_at, attempts = stored
        if expires_at < datetime.now(timezone.utc) or attempts >= self._config.max_attempts:
            self._storage.delete_code(email)
            return False

        if not hmac.compare_digest(code_hash, _hash_code(code.strip())):
            self._storage.record_failed_attempt(email)
            return False

        self._storage.delete_code(email)
        return self._storage.mark_email_verified(email)
