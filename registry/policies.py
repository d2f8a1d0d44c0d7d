"""
registry/policies.py

Who besides the owning registrar may change a case's status.

The case registry asks its policy ``may_change_status(principal, case)``
only after the registrar check fails, so a policy never needs to handle the
owner itself.
"""

import logging
import threading
from typing import Protocol

from registry.models import MedicalCase, Principal

logger = logging.getLogger(__name__)


class StatusChangePolicy(Protocol):
    def may_change_status(self, principal: Principal, case: MedicalCase) -> bool:
        ...


class NoSpecialistAssignments:
    """Default: there is no assignment mechanism, so no specialist qualifies."""

    def may_change_status(self, principal: Principal, case: MedicalCase) -> bool:
        return False


class AssignedSpecialists:
    """In-memory assignments of specialists to case ids."""

    def __init__(self):
        self._assignments: dict[int, set[Principal]] = {}
        self._lock = threading.Lock()

    def assign(self, case_id: int, specialist: Principal) -> None:
        with self._lock:
            self._assignments.setdefault(case_id, set()).add(specialist)
        logger.info("Assigned specialist %s to case %d", specialist, case_id)

    def unassign(self, case_id: int, specialist: Principal) -> None:
        with self._lock:
            self._assignments.get(case_id, set()).discard(specialist)

    def may_change_status(self, principal: Principal, case: MedicalCase) -> bool:
        with self._lock:
            return principal in self._assignments.get(case.id, ())
