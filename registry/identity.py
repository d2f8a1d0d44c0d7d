"""
registry/identity.py

Role grants for registry callers.

Principals arrive already authenticated; this module only records which of
them may register cases (registrars) and which may verify them (verifiers).
Grants are flags: granting upserts, revoking clears the flag but keeps the
row, and a missing row reads as "not granted".
"""

import logging
import sqlite3

from registry.clock import WallClock
from registry.db import Database
from registry.models import Principal, RegistrarGrant, VerifierGrant

logger = logging.getLogger(__name__)


class IdentityRegistry:
    def __init__(self, db: Database, clock=None):
        self.db = db
        self.clock = clock or WallClock()

    # -------------------------
    # Registrars
    # -------------------------
    def authorize_registrar(
        self,
        registrar: Principal,
        institution: str,
        credentials: str,
    ) -> RegistrarGrant:
        """Create or overwrite the registrar grant for *registrar*."""
        grant = RegistrarGrant(
            principal=registrar,
            institution=institution,
            credentials=credentials,
            authorized=True,
            granted_at=self.clock.now(),
        )
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO registrar_grants
                    (principal, institution, credentials, authorized, granted_at)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(principal) DO UPDATE SET
                    institution = excluded.institution,
                    credentials = excluded.credentials,
                    authorized  = 1,
                    granted_at  = excluded.granted_at
                """,
                (registrar, institution, credentials, grant.granted_at),
            )
        logger.info("Authorized registrar %s (%s)", registrar, institution)
        return grant

    def revoke_registrar(self, registrar: Principal) -> None:
        with self.db.transaction() as conn:
            cur = conn.execute(
                "UPDATE registrar_grants SET authorized = 0 WHERE principal = ?",
                (registrar,),
            )
        if cur.rowcount:
            logger.info("Revoked registrar %s", registrar)

    def get_registrar_grant(self, registrar: Principal) -> RegistrarGrant | None:
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM registrar_grants WHERE principal = ?", (registrar,)
            ).fetchone()
        return _registrar_grant(row) if row else None

    def is_registrar_authorized(self, registrar: Principal) -> bool:
        grant = self.get_registrar_grant(registrar)
        return grant is not None and grant.authorized

    # -------------------------
    # Verifiers
    # -------------------------
    def add_verifier(self, verifier: Principal) -> VerifierGrant:
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO verifier_grants (principal, is_verifier) VALUES (?, 1)
                ON CONFLICT(principal) DO UPDATE SET is_verifier = 1
                """,
                (verifier,),
            )
        logger.info("Added verifier %s", verifier)
        return VerifierGrant(principal=verifier, is_verifier=True)

    def remove_verifier(self, verifier: Principal) -> None:
        with self.db.transaction() as conn:
            cur = conn.execute(
                "UPDATE verifier_grants SET is_verifier = 0 WHERE principal = ?",
                (verifier,),
            )
        if cur.rowcount:
            logger.info("Removed verifier %s", verifier)

    def get_verifier_grant(self, verifier: Principal) -> VerifierGrant | None:
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM verifier_grants WHERE principal = ?", (verifier,)
            ).fetchone()
        if row is None:
            return None
        return VerifierGrant(principal=row["principal"], is_verifier=bool(row["is_verifier"]))

    def is_verifier(self, principal: Principal) -> bool:
        grant = self.get_verifier_grant(principal)
        return grant is not None and grant.is_verifier


def _registrar_grant(row: sqlite3.Row) -> RegistrarGrant:
    return RegistrarGrant(
        principal=row["principal"],
        institution=row["institution"],
        credentials=row["credentials"],
        authorized=bool(row["authorized"]),
        granted_at=row["granted_at"],
    )
