"""
registry/demo.py

Seed an in-memory registry with one example case and print it together
with its audit history.

Usage:
  python -m registry.demo
"""

import json
import logging

from registry.case_manager import CaseRegistry
from registry.clock import LogicalClock
from registry.config import configure_logging
from registry.db import MEMORY, Database
from registry.models import CaseDetails

logger = logging.getLogger(__name__)

DEMO_REGISTRAR = "registrar.demo"
DEMO_VERIFIER = "verifier.demo"

DEMO_CASE = CaseDetails(
    condition_category="Neurological",
    primary_symptoms="Progressive muscle weakness in limbs, fasciculations, dysarthria",
    secondary_symptoms="Fatigue, weight loss, occasional dysphagia",
    diagnostic_tests="EMG, NCS, MRI of brain and spine, blood tests for autoimmune markers",
    test_results=(
        "EMG shows widespread denervation, MRI negative for structural lesions, "
        "blood tests negative for common autoimmune markers"
    ),
    medical_history_relevant="No family history of neurodegenerative disease",
    demographic_data="Male, 45-50",
    geographic_region="North America",
    unusual_factors="Rapid progression over 3 months, asymmetric onset",
    attempted_treatments="Riluzole, physical therapy, speech therapy",
)


def seed_demo_data(registry: CaseRegistry) -> int:
    """Register, match and verify the demo case; return its id."""
    registry.identity.authorize_registrar(
        DEMO_REGISTRAR, "University Medical Center", "Board Certified Neurologist"
    )
    registry.identity.add_verifier(DEMO_VERIFIER)

    case_id = registry.register_case(DEMO_REGISTRAR, DEMO_CASE, "high")
    registry.update_case_status(
        DEMO_REGISTRAR, case_id, "matched", "Case matched with a neuromuscular specialist"
    )
    registry.verify_case(DEMO_VERIFIER, case_id, True)
    logger.info("Seeded demo case id=%d", case_id)
    return case_id


def main() -> None:
    configure_logging()
    db = Database(MEMORY)
    try:
        registry = CaseRegistry(db, clock=LogicalClock())
        case_id = seed_demo_data(registry)
        bundle = {
            "case": registry.get_case(case_id).model_dump(mode="json"),
            "history": [u.model_dump(mode="json") for u in registry.get_case_history(case_id)],
        }
        print(json.dumps(bundle, indent=2))
    finally:
        db.close()


if __name__ == "__main__":
    main()
