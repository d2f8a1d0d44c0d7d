"""
registry/case_manager.py

Higher-level business logic for the case registry.

Responsibilities
----------------
- Role checks: only authorized registrars create cases, only the owning
  registrar edits clinical content, the owner (or a principal the status
  policy admits) changes status, and only verifiers verify.
- Persisting case metadata plus the encrypted clinical payload.
- Writing exactly one audit entry per successful mutation, inside the same
  transaction as the mutation itself.

Errors
------
``Unauthorized`` and ``NotFound`` leave the store exactly as it was: the
check happens before any write, and any later failure rolls the whole
transaction back.

Status and urgency are free-text labels (``"registered"``, ``"matched"``,
``"in-treatment"``...).  The registry records them verbatim and does not
validate transitions between them.
"""

import logging
import sqlite3

from registry.audit import AuditLog
from registry.clock import WallClock
from registry.db import Database
from registry.errors import NotFound, Unauthorized
from registry.identity import IdentityRegistry
from registry.models import (
    STATUS_REGISTERED,
    CaseDetails,
    CaseEdit,
    CaseUpdate,
    MedicalCase,
    Principal,
    UpdateType,
)
from registry.policies import NoSpecialistAssignments, StatusChangePolicy

logger = logging.getLogger(__name__)


class CaseRegistry:
    def __init__(
        self,
        db: Database,
        identity: IdentityRegistry | None = None,
        audit: AuditLog | None = None,
        clock=None,
        status_policy: StatusChangePolicy | None = None,
    ):
        self.db = db
        self.clock = clock or WallClock()
        self.identity = identity or IdentityRegistry(db, self.clock)
        self.audit = audit or AuditLog(db)
        self.status_policy = status_policy or NoSpecialistAssignments()

    # -------------------------
    # Mutations
    # -------------------------
    def register_case(
        self,
        registrar: Principal,
        details: CaseDetails,
        urgency_level: str,
    ) -> int:
        """
        Create a case owned by *registrar* and return its id.

        Raises:
            Unauthorized: If *registrar* holds no active registrar grant.
        """
        with self.db.transaction() as conn:
            if not self.identity.is_registrar_authorized(registrar):
                logger.warning("Denied: %s is not an authorized registrar", registrar)
                raise Unauthorized(f"{registrar} is not an authorized registrar.")

            now = self.clock.now()
            case_id = conn.execute(
                """
                INSERT INTO cases
                    (registrar, current_status, urgency_level,
                     registration_date, last_updated, is_verified)
                VALUES (?, ?, ?, ?, ?, 0)
                """,
                (registrar, STATUS_REGISTERED, urgency_level, now, now),
            ).lastrowid
            # clinical fields only; metadata lives in the cases row
            payload = details.model_dump(include=set(CaseDetails.model_fields))
            conn.execute(
                "INSERT INTO case_payloads (case_id, encrypted_blob) VALUES (?, ?)",
                (case_id, self.db.cipher.encrypt_json(payload)),
            )
            self.audit.append(
                case_id, UpdateType.status_change, "Case registered",
                registrar, now, _conn=conn,
            )

        logger.info("Registered case id=%d by %s (urgency=%s)", case_id, registrar, urgency_level)
        return case_id

    def update_case(
        self,
        caller: Principal,
        case_id: int,
        edit: CaseEdit,
        urgency_level: str,
    ) -> int:
        """
        Overwrite the editable clinical fields and urgency of a case.

        Status, verification, owner and registration date are untouched.

        Raises:
            NotFound:     If *case_id* does not exist.
            Unauthorized: If *caller* is not the case's registrar.
        """
        with self.db.transaction() as conn:
            case = self._require_case(conn, case_id)
            if case.registrar != caller:
                logger.warning("Denied: %s attempted to edit case %d", caller, case_id)
                raise Unauthorized(f"{caller} is not the registrar of case {case_id}.")

            now = self.clock.now()
            details = case.details().model_copy(
                update=edit.model_dump(include=set(CaseEdit.model_fields))
            )
            conn.execute(
                "UPDATE cases SET urgency_level = ?, last_updated = ? WHERE id = ?",
                (urgency_level, now, case_id),
            )
            conn.execute(
                "UPDATE case_payloads SET encrypted_blob = ? WHERE case_id = ?",
                (self.db.cipher.encrypt_json(details.model_dump()), case_id),
            )
            self.audit.append(
                case_id, UpdateType.case_update, "Case details updated",
                caller, now, _conn=conn,
            )

        logger.info("Updated case id=%d by %s", case_id, caller)
        return case_id

    def update_case_status(
        self,
        caller: Principal,
        case_id: int,
        status: str,
        details: str,
    ) -> int:
        """
        Set the case's status label; *details* is logged verbatim.

        Raises:
            NotFound:     If *case_id* does not exist.
            Unauthorized: If *caller* is neither the registrar nor admitted
                          by the status policy.
        """
        with self.db.transaction() as conn:
            case = self._require_case(conn, case_id)
            if case.registrar != caller and not self.status_policy.may_change_status(caller, case):
                logger.warning("Denied: %s attempted to change status of case %d", caller, case_id)
                raise Unauthorized(f"{caller} may not change the status of case {case_id}.")

            now = self.clock.now()
            conn.execute(
                "UPDATE cases SET current_status = ?, last_updated = ? WHERE id = ?",
                (status, now, case_id),
            )
            self.audit.append(
                case_id, UpdateType.status_change, details,
                caller, now, _conn=conn,
            )

        logger.info("Case id=%d status %r -> %r by %s", case_id, case.current_status, status, caller)
        return case_id

    def verify_case(self, caller: Principal, case_id: int, verified: bool) -> int:
        """
        Mark a case as clinically verified, or revoke the mark.

        The verifier check runs before the existence check, so a non-verifier
        cannot learn whether a case id exists.  ``last_updated`` is left as is.

        Raises:
            Unauthorized: If *caller* is not a verifier.
            NotFound:     If *case_id* does not exist.
        """
        with self.db.transaction() as conn:
            if not self.identity.is_verifier(caller):
                logger.warning("Denied: %s is not a verifier (case %d)", caller, case_id)
                raise Unauthorized(f"{caller} is not a verifier.")
            if not _case_exists(conn, case_id):
                logger.warning("verify_case: case %d not found", case_id)
                raise NotFound(case_id)

            conn.execute(
                "UPDATE cases SET is_verified = ? WHERE id = ?",
                (int(verified), case_id),
            )
            self.audit.append(
                case_id,
                UpdateType.verification,
                "Case verified" if verified else "Case verification revoked",
                caller,
                self.clock.now(),
                _conn=conn,
            )

        logger.info("Case id=%d verified=%s by %s", case_id, verified, caller)
        return case_id

    # -------------------------
    # Reads
    # -------------------------
    def get_case(self, case_id: int) -> MedicalCase | None:
        """Return the case with its clinical details decrypted, or ``None``."""
        with self.db.transaction() as conn:
            return self._load_case(conn, case_id)

    def get_case_history(self, case_id: int) -> list[CaseUpdate]:
        """Return the audit entries of a case, oldest first."""
        with self.db.transaction() as conn:
            if not _case_exists(conn, case_id):
                raise NotFound(case_id)
            return self.audit.for_case(case_id)

    def cases_for_registrar(self, registrar: Principal) -> list[MedicalCase]:
        with self.db.transaction() as conn:
            ids = [
                r["id"]
                for r in conn.execute(
                    "SELECT id FROM cases WHERE registrar = ? ORDER BY id", (registrar,)
                ).fetchall()
            ]
            return [self._load_case(conn, case_id) for case_id in ids]

    # -------------------------
    # Helpers
    # -------------------------
    def _load_case(self, conn: sqlite3.Connection, case_id: int) -> MedicalCase | None:
        row = conn.execute(
            """
            SELECT c.*, p.encrypted_blob
            FROM cases c
            JOIN case_payloads p ON p.case_id = c.id
            WHERE c.id = ?
            """,
            (case_id,),
        ).fetchone()
        if row is None:
            return None

        meta = dict(row)
        payload = CaseDetails.model_validate(
            self.db.cipher.decrypt_json(meta.pop("encrypted_blob"))
        )
        return MedicalCase(**meta, **payload.model_dump())

    def _require_case(self, conn: sqlite3.Connection, case_id: int) -> MedicalCase:
        case = self._load_case(conn, case_id)
        if case is None:
            logger.warning("Case %d not found", case_id)
            raise NotFound(case_id)
        return case


def _case_exists(conn: sqlite3.Connection, case_id: int) -> bool:
    return conn.execute("SELECT 1 FROM cases WHERE id = ?", (case_id,)).fetchone() is not None
