"""Demo seeding and the printed case bundle."""

import json

from registry import demo
from registry.case_manager import CaseRegistry
from registry.models import UpdateType


def test_seed_demo_data(db, clock):
    registry = CaseRegistry(db, clock=clock)
    case_id = demo.seed_demo_data(registry)

    case = registry.get_case(case_id)
    assert case.current_status == "matched"
    assert case.is_verified is True
    assert [u.update_type for u in registry.get_case_history(case_id)] == [
        UpdateType.status_change,
        UpdateType.status_change,
        UpdateType.verification,
    ]


def test_main_prints_case_and_history(capsys, monkeypatch):
    monkeypatch.setattr(demo, "configure_logging", lambda: None)
    demo.main()

    bundle = json.loads(capsys.readouterr().out)
    assert bundle["case"]["id"] == 1
    assert bundle["case"]["registrar"] == demo.DEMO_REGISTRAR
    assert [h["update_type"] for h in bundle["history"]] == [
        "status-change",
        "status-change",
        "verification",
    ]
