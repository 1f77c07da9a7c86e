from types import SimpleNamespace

import pytest

from clinicflow.schemas.internal_models import PrescriptionStatus
from clinicflow.services.record_store import RecordStore


class FakeQuery:
    def __init__(self, rows, log):
        self.rows = rows
        self.log = log

    def select(self, columns):
        self.log.append(("select", columns))
        return self

    def eq(self, column, value):
        self.log.append(("eq", column, value))
        self.rows = [r for r in self.rows if r.get(column) == value]
        return self

    def order(self, column, desc=False):
        self.log.append(("order", column, desc))
        return self

    def limit(self, n):
        self.log.append(("limit", n))
        self.rows = self.rows[:n]
        return self

    def execute(self):
        return SimpleNamespace(data=self.rows)


class FakeSupabase:
    def __init__(self, tables):
        self.tables = tables
        self.log = []

    def table(self, name):
        self.log.append(("table", name))
        return FakeQuery(list(self.tables.get(name, [])), self.log)


PRESCRIPTION_ROW = {
    "id": "rx1", "patient_id": "p1", "doctor_id": "doc1", "diagnosis_id": None,
    "medications": [{"name": "Ibuprofen", "dosage": "400mg", "frequency": "twice daily", "duration": "5 days"}],
    "instructions": "With food", "status": "active", "refills_allowed": 1,
    "created_at": "2026-10-01T09:00:00+00:00",
}


@pytest.fixture
def store(monkeypatch):
    instance = RecordStore()
    fake = FakeSupabase({
        "diagnoses": [
            {"id": "d1", "patient_id": "p1", "doctor_id": "doc1", "condition": "Flu",
             "severity_level": "moderate", "description": "fever", "created_at": "2026-10-10T10:00:00Z"},
            {"id": "d2", "patient_id": "p1", "doctor_id": "doc1", "condition": "Broken row"},
            {"id": "d3", "patient_id": "p2", "doctor_id": "doc1", "condition": "Cold",
             "description": "", "created_at": "2026-10-11T10:00:00Z"},
        ],
        "prescriptions": [PRESCRIPTION_ROW],
        "user_profiles": [{"id": "u1", "role": "doctor"}],
    })
    monkeypatch.setattr(instance, "client", fake)
    return instance


def test_store_is_a_singleton():
    assert RecordStore() is RecordStore()


def test_diagnoses_are_filtered_ordered_and_validated(store):
    diagnoses = store.get_diagnoses("p1", limit=10)
    assert [d.id for d in diagnoses] == ["d1"]
    assert ("order", "created_at", True) in store.client.log
    assert ("limit", 10) in store.client.log


def test_prescription_lookup_is_scoped_to_patient(store):
    prescription = store.get_prescription("rx1", "p1")
    assert prescription.status == PrescriptionStatus.ACTIVE
    assert prescription.medications[0].name == "Ibuprofen"
    assert store.get_prescription("rx1", "p2") is None


def test_user_role_lookup(store):
    assert store.get_user_role("u1") == "doctor"
    assert store.get_user_role("missing") is None


def test_missing_client_returns_empty(monkeypatch):
    instance = RecordStore()
    monkeypatch.setattr(instance, "client", None)
    assert instance.get_appointments("p1") == []
    assert instance.get_diagnosis("d1") is None
