"""
registry/models.py

Pydantic v2 data models for the case registry.

These models describe the shape of data flowing between the registry
components and their callers.  They are NOT ORM models; persistence is
handled entirely by db.py.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Opaque, already-authenticated caller identity.  Only equality is used.
Principal = str


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class UpdateType(str, Enum):
    """Kinds of entries in the audit log."""
    status_change = "status-change"
    case_update = "case-update"
    verification = "verification"


# Status assigned at registration.  Later statuses are free text.
STATUS_REGISTERED = "registered"


# ---------------------------------------------------------------------------
# Identity grants
# ---------------------------------------------------------------------------


class RegistrarGrant(BaseModel):
    """Permission for a principal to register and amend cases."""
    principal: Principal
    institution: str
    credentials: str
    authorized: bool = True
    granted_at: int = Field(description="Logical timestamp of the last upsert.")


class VerifierGrant(BaseModel):
    principal: Principal
    is_verifier: bool = True


# ---------------------------------------------------------------------------
# Cases
# ---------------------------------------------------------------------------


class CaseEdit(BaseModel):
    """
    The clinical fields a registrar may amend after registration.

    Category, history, demographics and region are fixed at registration.
    """
    primary_symptoms: str
    secondary_symptoms: str = ""
    diagnostic_tests: str = ""
    test_results: str = ""
    unusual_factors: str = ""
    attempted_treatments: str = ""


class CaseDetails(CaseEdit):
    """
    All clinical free text recorded for a case.

    This is the only place PHI should appear.  The entire model is serialised
    to JSON and then encrypted before storage.
    """
    condition_category: str
    medical_history_relevant: str = ""
    demographic_data: str = ""
    geographic_region: str = ""


class MedicalCase(CaseDetails):
    """A case record with its clinical details decrypted."""
    id: int
    registrar: Principal
    current_status: str = STATUS_REGISTERED
    urgency_level: str
    registration_date: int
    last_updated: int
    is_verified: bool = False

    def details(self) -> CaseDetails:
        return CaseDetails(**self.model_dump(include=set(CaseDetails.model_fields)))


class CaseUpdate(BaseModel):
    """One immutable entry of the append-only audit log."""
    id: int
    case_id: int
    update_type: UpdateType
    details: str
    updated_by: Principal
    timestamp: int

    model_config = ConfigDict(frozen=True)
