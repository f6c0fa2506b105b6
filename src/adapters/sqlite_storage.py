"""SQLite storage adapter.

Implements the core MessageStorePort and PreferenceStorePort, plus the
author directory the identity side writes to, using one SQLite database.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from core.errors import StorageError
from core.models import Author, Identity, NewMessage, StoredMessage

_MESSAGE_COLUMNS = """
    m.id, m.message, m.user_id, m.created_at, m.reply_to_id,
    a.id AS author_row, a.display_username, a.username, a.name
"""


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the message and preference ports."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open database {self._db_path}: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - authors: author directory maintained by the identity side
        - guestbook: append-only log of messages and replies
        - preferences: per-viewer ignore list
        """

        with self._transaction() as conn:
            # authors mirrors the external identity so feed reads can join
            # the display label without calling the identity provider.
            # Fields:
            # - id: opaque identity id (PRIMARY KEY)
            # - email: address codes are sent to
            # - email_verified: 0/1 flag owned by the identity side
            # - display_username, username, name: label candidates, in order
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS authors (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    email_verified INTEGER NOT NULL DEFAULT 0,
                    display_username TEXT,
                    username TEXT,
                    name TEXT,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            # guestbook is append-only: rows are never updated or deleted.
            # Fields:
            # - seq: insertion order, breaks ties between equal timestamps
            # - id: opaque message id exposed to callers
            # - message: sanitized text
            # - user_id: author id
            # - created_at: UTC timestamp, sole sort key for the feed
            # - reply_to_id: parent message id for replies, NULL for roots
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS guestbook (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    message TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    reply_to_id TEXT REFERENCES guestbook(id)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS guestbook_created_at ON guestbook (created_at DESC, seq DESC)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS guestbook_user_id ON guestbook (user_id)")
            # preferences keeps one row per viewer; the list is stored as a
            # JSON array and replaced wholesale on every write.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS preferences (
                    user_id TEXT PRIMARY KEY,
                    ignored_users TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            # verification_codes holds at most one outstanding code per email,
            # stored only as a SHA-256 hash.
            # Fields:
            # - email: address the code was issued for (PRIMARY KEY)
            # - code_hash: hex digest of the code
            # - expires_at: UTC expiry; rows past it are rejected and cleaned up
            # - attempts: failed submissions so far
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS verification_codes (
                    email TEXT PRIMARY KEY,
                    code_hash TEXT NOT NULL,
                    expires_at TIMESTAMP NOT NULL,
                    attempts INTEGER NOT NULL DEFAULT 0
                )
                """
            )

    # Author directory

    def upsert_author(self, identity: Identity) -> None:
        """Insert or refresh an author row from an identity."""

        now = datetime.now(timezone.utc)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO authors (
                    id, email, email_verified, display_username, username, name, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email = excluded.email,
                    email_verified = excluded.email_verified,
                    display_username = excluded.display_username,
                    username = excluded.username,
                    name = excluded.name
                """,
                (
                    identity.id,
                    identity.email,
                    int(identity.email_verified),
                    identity.display_username,
                    identity.username,
                    identity.name,
                    now.isoformat(timespec="microseconds"),
                ),
            )

    def get_identity(self, author_id: str) -> Optional[Identity]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM authors WHERE id = ?", (author_id,)).fetchone()
        if row is None:
            return None
        return Identity(
            id=row["id"],
            email=row["email"],
            email_verified=bool(row["email_verified"]),
            display_username=row["display_username"],
            username=row["username"],
            name=row["name"],
        )

    def mark_email_verified(self, email: str) -> bool:
        """Set the verified flag; returns False when no author has that email."""

        with self._transaction() as conn:
            cur = conn.execute("UPDATE authors SET email_verified = 1 WHERE email = ?", (email,))
            return cur.rowcount > 0

    # MessageStorePort

    def insert_message(self, message: NewMessage) -> StoredMessage:
        """Append one message and return it with its author joined."""

        message_id = uuid.uuid4().hex
        with self._transaction() as conn:
            # Clamp to the newest stored timestamp so ordering never goes
            # backwards when the wall clock does.
            row = conn.execute("SELECT MAX(created_at) AS latest FROM guestbook").fetchone()
            created_at = datetime.now(timezone.utc)
            if row["latest"]:
                latest = datetime.fromisoformat(row["latest"])
                if latest > created_at:
                    created_at = latest
            conn.execute(
                """
                INSERT INTO guestbook (id, message, user_id, created_at, reply_to_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message_id,
                    message.text,
                    message.author_id,
                    created_at.isoformat(timespec="microseconds"),
                    message.reply_to_id,
                ),
            )
        stored = self.get_message(message_id)
        if stored is None:
            raise StorageError(f"Message {message_id} missing after insert")
        return stored

    def get_message(self, message_id: str) -> Optional[StoredMessage]:
        with self._transaction() as conn:
            row = conn.execute(
                f"""
                SELECT {_MESSAGE_COLUMNS}
                FROM guestbook m LEFT JOIN authors a ON a.id = m.user_id
                WHERE m.id = ?
                """,
                (message_id,),
            ).fetchone()
        return _row_to_message(row) if row else None

    def list_messages(
        self, offset: int, limit: int, author_id: Optional[str] = None
    ) -> List[StoredMessage]:
        """Return messages newest first, optionally for one author."""

        where = ""
        params: list = []
        if author_id is not None:
            where = "WHERE m.user_id = ?"
            params.append(author_id)
        params.extend([limit, offset])
        with self._transaction() as conn:
            rows = conn.execute(
                f"""
                SELECT {_MESSAGE_COLUMNS}
                FROM guestbook m LEFT JOIN authors a ON a.id = m.user_id
                {where}
                ORDER BY m.created_at DESC, m.seq DESC
                LIMIT ? OFFSET ?
                """,
                params,
            ).fetchall()
        return [_row_to_message(row) for row in rows]

    def count_messages(self, author_id: Optional[str] = None) -> int:
        with self._transaction() as conn:
            if author_id is None:
                row = conn.execute("SELECT COUNT(*) AS total FROM guestbook").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) AS total FROM guestbook WHERE user_id = ?",
                    (author_id,),
                ).fetchone()
        return int(row["total"])

    # PreferenceStorePort

    def get_ignored(self, viewer_id: str) -> List[str]:
        """Return the viewer's ignore list, empty when never set."""

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT ignored_users FROM preferences WHERE user_id = ?",
                (viewer_id,),
            ).fetchone()
        if row is None:
            return []
        return list(json.loads(row["ignored_users"]))

    def set_ignored(self, viewer_id: str, labels: List[str]) -> None:
        """Replace the viewer's ignore list in a single upsert."""

        now = datetime.now(timezone.utc)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO preferences (user_id, ignored_users, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    ignored_users = excluded.ignored_users,
                    updated_at = excluded.updated_at
                """,
                (
                    viewer_id,
                    json.dumps(list(dict.fromkeys(labels))),
                    now.isoformat(timespec="microseconds"),
                ),
            )

    # Verification codes

    def save_code(self, email: str, code_hash: str, expires_at: datetime) -> None:
        """Store a code hash, replacing any outstanding code for the email."""

        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO verification_codes (email, code_hash, expires_at, attempts)
                VALUES (?, ?, ?, 0)
                ON CONFLICT(email) DO UPDATE SET
                    code_hash = excluded.code_hash,
                    expires_at = excluded.expires_at,
                    attempts = 0
                """,
                (email, code_hash, expires_at.isoformat(timespec="microseconds")),
            )

    def get_code(self, email: str) -> Optional[tuple[str, datetime, int]]:
        """Return (code_hash, expires_at, attempts) for an email, if any."""

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT code_hash, expires_at, attempts FROM verification_codes WHERE email = ?",
                (email,),
            ).fetchone()
        if row is None:
            return None
        return row["code_hash"], datetime.fromisoformat(row["expires_at"]), int(row["attempts"])

    def record_failed_attempt(self, email: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE verification_codes SET attempts = attempts + 1 WHERE email = ?",
                (email,),
            )

    def delete_code(self, email: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM verification_codes WHERE email = ?", (email,))

    def cleanup_expired_codes(self) -> int:
        """Delete expired codes and return the number removed."""

        now = datetime.now(timezone.utc)
        with self._transaction() as conn:
            cur = conn.execute(
                "DELETE FROM verification_codes WHERE expires_at < ?",
                (now.isoformat(timespec="microseconds"),),
            )
            return cur.rowcount


def _row_to_message(row: sqlite3.Row) -> StoredMessage:
    author = None
    if row["author_row"] is not None:
        author = Author(
            id=row["author_row"],
            display_username=row["display_username"],
            username=row["username"],
            name=row["name"],
        )
    return StoredMessage(
        id=row["id"],
        text=row["message"],
        author_id=row["user_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        reply_to_id=row["reply_to_id"],
        author=author,
    )
