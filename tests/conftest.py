import pytest
from cryptography.fernet import Fernet

from registry.case_manager import CaseRegistry
from registry.clock import LogicalClock
from registry.crypto import PayloadCipher
from registry.db import MEMORY, Database
from registry.models import CaseDetails, CaseEdit

REGISTRAR = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
SPECIALIST = "ST2PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
VERIFIER = "ST3PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"

TEST_KEY = Fernet.generate_key()


@pytest.fixture
def clock():
    return LogicalClock(height=100)


@pytest.fixture
def db():
    database = Database(MEMORY, cipher=PayloadCipher(TEST_KEY))
    yield database
    database.close()


@pytest.fixture
def registry(db, clock):
    reg = CaseRegistry(db, clock=clock)
    reg.identity.authorize_registrar(
        REGISTRAR,
        "University Medical Center",
        "Board Certified Neurologist, License #12345",
    )
    reg.identity.add_verifier(VERIFIER)
    return reg


@pytest.fixture
def details():
    return CaseDetails(
        condition_category="Neurological",
        primary_symptoms="Progressive muscle weakness in limbs, fasciculations, dysarthria",
        secondary_symptoms="Fatigue, weight loss, occasional dysphagia",
        diagnostic_tests="EMG, NCS, MRI of brain and spine, blood tests for autoimmune markers",
        test_results="EMG shows widespread denervation, MRI negative for structural lesions",
        medical_history_relevant="No family history of neurodegenerative disease",
        demographic_data="Male, 45-50, Caucasian",
        geographic_region="North America",
        unusual_factors="Rapid progression over 3 months, asymmetric onset",
        attempted_treatments="Riluzole, physical therapy, speech therapy",
    )


@pytest.fixture
def edit():
    return CaseEdit(
        primary_symptoms="Progressive muscle weakness, now with bulbar symptoms",
        secondary_symptoms="Fatigue, weight loss, dysphagia, occasional shortness of breath",
        diagnostic_tests="EMG, NCS, MRI, pulmonary function tests",
        test_results="Reduced vital capacity on PFTs",
        unusual_factors="Respiratory involvement",
        attempted_treatments="Riluzole, non-invasive ventilation at night",
    )
