from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from clinicflow.engines.gateway_client import GatewayRequestError
from clinicflow.schemas.internal_models import (
    AppointmentRecord, DiagnosisRecord, Medication, PrescriptionRecord, PrescriptionStatus
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
_ids = count(1)


class FakeGateway:
    """Stands in for GatewayClient; replies with canned text or raises."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def call(self, prompt, timeout_ms=None, retries=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply

    @property
    def call_count(self):
        return len(self.prompts)


def make_diagnosis(condition="flu", days_ago=1, description="", patient_id="p1"):
    return DiagnosisRecord(
        id=f"d{next(_ids)}", patient_id=patient_id, doctor_id="doc1",
        condition=condition, description=description,
        created_at=NOW - timedelta(days=days_ago),
    )

def make_appointment(days_ago=1, patient_id="p1"):
    return AppointmentRecord(
        id=f"a{next(_ids)}", patient_id=patient_id, doctor_id="doc1",
        start_time=NOW - timedelta(days=days_ago),
    )

def make_prescription(status=PrescriptionStatus.ACTIVE, days_ago=1, medications=None,
                      instructions="Take after meals", diagnosis_id=None, patient_id="p1"):
    return PrescriptionRecord(
        id=f"rx{next(_ids)}", patient_id=patient_id, doctor_id="doc1", diagnosis_id=diagnosis_id,
        medications=medications or [Medication(name="Amoxicillin", dosage="500mg", frequency="twice daily", duration="7 days")],
        instructions=instructions, status=status,
        created_at=NOW - timedelta(days=days_ago),
    )


@pytest.fixture
def failing_gateway():
    return FakeGateway(error=GatewayRequestError("AI service temporarily unavailable"))
