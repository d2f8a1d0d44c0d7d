"""
registry/audit.py

Append-only log of case updates.

Entries are only ever inserted; there is no update or delete path.  Ids come
from an AUTOINCREMENT counter, so id order is insertion order and a case's
full provenance is :meth:`AuditLog.for_case`.
"""

import logging
import sqlite3

from registry.db import Database
from registry.models import CaseUpdate, Principal, UpdateType

logger = logging.getLogger(__name__)


class AuditLog:
    def __init__(self, db: Database):
        self.db = db

    def append(
        self,
        case_id: int,
        update_type: UpdateType | str,
        details: str,
        updated_by: Principal,
        timestamp: int,
        *,
        _conn: sqlite3.Connection | None = None,
    ) -> int:
        """
        Append an entry and return its id.

        Pass *_conn* to write inside the caller's transaction, so the entry
        commits or rolls back together with the case mutation it records.
        """
        update_type = UpdateType(update_type)
        sql = """
            INSERT INTO case_updates (case_id, update_type, details, updated_by, timestamp)
            VALUES (?, ?, ?, ?, ?)
        """
        params = (case_id, update_type.value, details, updated_by, timestamp)

        if _conn is not None:
            update_id = _conn.execute(sql, params).lastrowid
        else:
            with self.db.transaction() as conn:
                update_id = conn.execute(sql, params).lastrowid

        logger.debug(
            "Audit: update=%d case=%d type=%s by=%s",
            update_id, case_id, update_type.value, updated_by,
        )
        return update_id

    def get(self, update_id: int) -> CaseUpdate | None:
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM case_updates WHERE id = ?", (update_id,)
            ).fetchone()
        return CaseUpdate(**dict(row)) if row else None

    def for_case(self, case_id: int) -> list[CaseUpdate]:
        """Return every entry for *case_id*, oldest first."""
        with self.db.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM case_updates WHERE case_id = ? ORDER BY id",
                (case_id,),
            ).fetchall()
        return [CaseUpdate(**dict(r)) for r in rows]

    def count(self) -> int:
        with self.db.transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM case_updates").fetchone()[0]
