"""
registry/db.py

SQLite backend for the case registry.

Schema
------
registrar_grants  — registrar permissions keyed by principal
verifier_grants   — verifier flags keyed by principal
cases             — case metadata (non-PHI fields in the clear)
case_payloads     — encrypted clinical free text, one blob per case
case_updates      — append-only audit log

All clinical content is stored only inside case_payloads.encrypted_blob,
which is encrypted by registry.crypto before being persisted.

Usage
-----
    from registry.db import Database
    db = Database(":memory:")      # or a file path; schema is created on open
    with db.transaction() as conn:
        ...
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from registry import config
from registry.crypto import PayloadCipher
from registry.errors import StorageError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_DDL = """
CREATE TABLE IF NOT EXISTS registrar_grants (
    principal    TEXT    PRIMARY KEY,
    institution  TEXT    NOT NULL,
    credentials  TEXT    NOT NULL,
    authorized   INTEGER NOT NULL DEFAULT 1,
    granted_at   INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS verifier_grants (
    principal    TEXT    PRIMARY KEY,
    is_verifier  INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS cases (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    registrar          TEXT    NOT NULL,
    current_status     TEXT    NOT NULL DEFAULT 'registered',
    urgency_level      TEXT    NOT NULL,
    registration_date  INTEGER NOT NULL,
    last_updated       INTEGER NOT NULL,
    is_verified        INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_cases_registrar ON cases(registrar);

CREATE TABLE IF NOT EXISTS case_payloads (
    case_id         INTEGER PRIMARY KEY REFERENCES cases(id),
    encrypted_blob  TEXT    NOT NULL            -- Fernet token from crypto.py
);

CREATE TABLE IF NOT EXISTS case_updates (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    case_id      INTEGER NOT NULL REFERENCES cases(id),
    update_type  TEXT    NOT NULL
                     CHECK(update_type IN ('status-change', 'case-update', 'verification')),
    details      TEXT    NOT NULL,
    updated_by   TEXT    NOT NULL,
    timestamp    INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_case_updates_case ON case_updates(case_id, id);
"""

# Child tables first so foreign keys hold while clearing.
_TABLES = ("case_updates", "case_payloads", "cases", "verifier_grants", "registrar_grants")


class Database:
    """
    One SQLite connection plus the lock that serialises every transaction.

    ``check_same_thread=False`` lets several threads share the connection;
    :meth:`transaction` holds a re-entrant lock for the whole unit of work,
    so id allocation and read-modify-write sequences never interleave.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        cipher: PayloadCipher | None = None,
    ):
        self.path = str(path if path is not None else config.DB_PATH)
        self.cipher = cipher or PayloadCipher()
        self._lock = threading.RLock()
        self._depth = 0
        self._conn = self._connect()
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        if self.path != MEMORY:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if self.path != MEMORY:
                conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
        except sqlite3.Error as exc:
            logger.error("Could not open database at %s: %s", self.path, exc)
            raise StorageError(f"Could not open database at {self.path}.") from exc
        return conn

    def init_schema(self) -> None:
        """Create all tables if they do not already exist (idempotent)."""
        with self._lock:
            try:
                self._conn.executescript(_DDL)
            except sqlite3.Error as exc:
                raise StorageError("Schema initialisation failed.") from exc
        logger.info("Database initialised at %s", self.path)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Yield the connection inside a single all-or-nothing transaction.

        Nested calls join the outermost transaction.  Any exception rolls
        back every write made since the outermost call began; SQLite errors
        are re-raised as :class:`StorageError`.
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self._conn
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                logger.error("Transaction rolled back: %s", exc)
                raise StorageError("Storage operation failed.") from exc
            finally:
                self._depth = 0

    def reset(self) -> None:
        """Delete every row and restart every id counter at 1."""
        with self.transaction() as conn:
            for table in _TABLES:
                conn.execute(f"DELETE FROM {table}")
            conn.execute("DELETE FROM sqlite_sequence")
        logger.info("Database at %s reset", self.path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
