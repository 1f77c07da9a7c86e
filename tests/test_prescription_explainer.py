import pytest

from clinicflow.engines.prescription_explainer import (
    ENGLISH_FALLBACK, URDU_FALLBACK, PrescriptionExplainer, render_medications
)
from clinicflow.schemas.internal_models import Language, Medication
from conftest import FakeGateway, make_prescription

MEDS = [
    Medication(name="Amoxicillin", dosage="500mg", frequency="three times daily", duration="7 days"),
    Medication(name="Paracetamol", dosage="1g", frequency="as needed", duration="3 days", instructions="max 4g/day"),
]


def test_render_medications():
    assert render_medications(make_prescription(medications=MEDS)) == \
        "Amoxicillin (500mg, three times daily, 7 days), Paracetamol (1g, as needed, 3 days)"


def test_reply_is_returned_verbatim():
    reply = "  Amoxicillin kills bacteria.\n\n1. Take it with food.  "
    gateway = FakeGateway(reply=reply)
    result = PrescriptionExplainer(gateway).explain(make_prescription(medications=MEDS))
    assert result.text == reply
    assert result.language == Language.ENGLISH
    assert result.used_fallback is False
    assert result.note is None


def test_prompt_carries_prescription_details():
    gateway = FakeGateway(reply="ok")
    prescription = make_prescription(medications=MEDS, instructions="Finish the course")
    PrescriptionExplainer(gateway).explain(prescription, Language.ENGLISH, condition="Strep throat")
    prompt = gateway.prompts[0]
    assert "patient-friendly English:" in prompt
    assert "- Condition: Strep throat" in prompt
    assert "- Instructions: Finish the course" in prompt
    assert "- Duration: 7 days" in prompt
    assert "7. Preventive advice to avoid recurrence" in prompt
    assert "Please respond in English." in prompt


def test_urdu_prompt_directive():
    gateway = FakeGateway(reply="جواب")
    result = PrescriptionExplainer(gateway).explain(make_prescription(), "urdu")
    assert result.language == Language.URDU
    assert "patient-friendly Urdu:" in gateway.prompts[0]
    assert "Please respond in Urdu (Roman Urdu or Urdu script)." in gateway.prompts[0]
    assert "- Condition: Not specified" in gateway.prompts[0]


def test_english_fallback_lists_medications_and_instructions(failing_gateway):
    prescription = make_prescription(medications=MEDS, instructions="Take after meals")
    result = PrescriptionExplainer(failing_gateway).explain(prescription, Language.ENGLISH)
    assert result.used_fallback is True
    assert result.note == "AI service temporarily unavailable. Showing basic explanation."
    assert result.text.startswith("This prescription includes the following medications: Amoxicillin, Paracetamol.")
    assert "- Take after meals" in result.text
    assert "Lifestyle Recommendations:" in result.text


def test_urdu_fallback_uses_its_own_template(failing_gateway):
    prescription = make_prescription(medications=MEDS, instructions="کھانے کے بعد لیں")
    result = PrescriptionExplainer(failing_gateway).explain(prescription, Language.URDU)
    assert result.used_fallback is True
    assert result.language == Language.URDU
    assert result.text.startswith("یہ نسخہ مندرجہ ذیل ادویات پر مشتمل ہے: Amoxicillin, Paracetamol۔")
    assert "- کھانے کے بعد لیں" in result.text
    assert "Lifestyle" not in result.text


def test_templates_are_distinct_strings():
    assert ENGLISH_FALLBACK != URDU_FALLBACK
    assert "{MEDICATIONS}" in URDU_FALLBACK and "{INSTRUCTIONS}" in URDU_FALLBACK


def test_unknown_language_is_rejected():
    with pytest.raises(ValueError):
        PrescriptionExplainer(FakeGateway(reply="x")).explain(make_prescription(), "french")


def test_explainer_without_gateway_falls_back():
    result = PrescriptionExplainer().explain(make_prescription())
    assert result.used_fallback is True
