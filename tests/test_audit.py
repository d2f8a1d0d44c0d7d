"""Append-only audit log: id assignment, lookups and per-case history."""

import pytest
from pydantic import ValidationError

from registry.audit import AuditLog
from registry.errors import StorageError
from registry.models import UpdateType

from conftest import REGISTRAR


def test_append_assigns_sequential_ids(registry, details):
    case_id = registry.register_case(REGISTRAR, details, "low")
    audit = registry.audit

    # registration already wrote entry 1
    second = audit.append(case_id, UpdateType.case_update, "note", "someone", 101)
    third = audit.append(case_id, "status-change", "other", "someone", 102)

    assert (second, third) == (2, 3)
    assert audit.count() == 3


def test_get_returns_entry_or_none(registry, details):
    case_id = registry.register_case(REGISTRAR, details, "low")

    entry = registry.audit.get(1)
    assert entry.case_id == case_id
    assert entry.update_type == UpdateType.status_change
    assert entry.details == "Case registered"
    assert entry.timestamp == 100
    assert registry.audit.get(999) is None


def test_entries_are_immutable(registry, details):
    registry.register_case(REGISTRAR, details, "low")
    entry = registry.audit.get(1)
    with pytest.raises(ValidationError):
        entry.details = "rewritten"


def test_append_rejects_unknown_update_type(db):
    with pytest.raises(ValueError):
        AuditLog(db).append(1, "deleted", "x", "someone", 1)


def test_append_requires_existing_case(db):
    with pytest.raises(StorageError):
        AuditLog(db).append(42, UpdateType.case_update, "orphan", "someone", 1)
    assert AuditLog(db).count() == 0


def test_for_case_filters_and_orders(registry, details):
    first = registry.register_case(REGISTRAR, details, "low")
    second = registry.register_case(REGISTRAR, details, "low")
    registry.update_case_status(REGISTRAR, first, "matched", "matched")

    history = registry.audit.for_case(first)
    assert [u.id for u in history] == [1, 3]
    assert [u.case_id for u in registry.audit.for_case(second)] == [second]
