import logging
from typing import List, Optional, Sequence

from clinicflow.core.risk_utils import is_urgent
from clinicflow.core.text_parsing import extract_icd_code, parse_risk_level, parse_structured_hints
from clinicflow.engines.gateway_client import GatewayClient, GatewayUnavailable
from clinicflow.schemas.internal_models import (
    Gender, PatientHistory, RiskLevel, SuggestedCondition, SymptomSuggestion
)
from clinicflow.services.metrics_service import MetricsService
from clinicflow.utils.time_utils import as_utc

logger = logging.getLogger("SymptomEngine")

HISTORY_ITEM_LIMIT = 5
DISCLAIMER = "AI suggestions are for reference only. Clinical judgment and patient examination are required for diagnosis."
URGENT_WARNING = "Consider immediate consultation"
FALLBACK_NOTE = "AI service temporarily unavailable. Showing basic guidance."

EVALUATION_NEEDED = SuggestedCondition(label="Symptom Evaluation Needed", confidence="N/A")

SYMPTOM_PROMPT = """As a medical AI assistant, analyze these symptoms and provide a structured response:

Patient Information:
- Symptoms: {SYMPTOM_TEXT}
- Age: {AGE}
- Gender: {GENDER}{HISTORY}

Please provide:
1. Top 3-5 possible conditions with ICD codes (if available)
2. Risk level assessment (Low/Medium/High/Critical)
3. Suggested diagnostic tests
4. Immediate recommendations

Format your response clearly with sections for each."""

HISTORY_BLOCK = """

Patient Medical History:
- Recent Conditions: {CONDITIONS}
- Recent Medications: {MEDICATIONS}
- Total Appointments: {APPOINTMENTS}"""

# Each rule fires when every keyword is present in the joined symptom text.
FALLBACK_RULES = [
    {
        "keywords": ("fever", "cough"),
        "condition": SuggestedCondition(label="Upper Respiratory Infection", icd_code="J00", confidence="65%"),
        "tests": ["Complete Blood Count (CBC)", "Chest X-ray if persistent"],
        "risk": RiskLevel.MEDIUM,
    },
    {
        "keywords": ("chest pain",),
        "condition": SuggestedCondition(label="Chest Pain - Requires Evaluation", icd_code="R06.02", confidence="N/A"),
        "tests": ["ECG", "Troponin levels", "Chest X-ray"],
        "risk": RiskLevel.HIGH,
    },
    {
        "keywords": ("abdominal pain",),
        "condition": SuggestedCondition(label="Abdominal Pain", icd_code="R10.9", confidence="50%"),
        "tests": ["Complete Blood Count", "Abdominal Ultrasound"],
        "risk": RiskLevel.MEDIUM,
    },
]
FALLBACK_DEFAULT_TESTS = ["Physical Examination", "Basic Blood Work"]
FALLBACK_RECOMMENDATIONS = ["Physical examination required", "Monitor symptoms", "Follow up if symptoms worsen"]


def warnings_for(risk_level: RiskLevel) -> List[str]:
    return [URGENT_WARNING] if is_urgent(risk_level) else []


class SymptomSuggestionEngine:
    def __init__(self, gateway: Optional[GatewayClient] = None):
        self.gateway = gateway

    def build_prompt(self, symptoms: Sequence[str], age: Optional[int] = None, gender: Optional[Gender] = None,
                     history: Optional[PatientHistory] = None) -> str:
        gender_text = gender.value if isinstance(gender, Gender) else gender
        return (SYMPTOM_PROMPT
                .replace("{SYMPTOM_TEXT}", ", ".join(symptoms))
                .replace("{AGE}", str(age) if age is not None else "unknown")
                .replace("{GENDER}", gender_text or "unknown")
                .replace("{HISTORY}", self._history_block(history) if history else ""))

    def _history_block(self, history: PatientHistory) -> str:
        diagnoses = sorted(history.diagnoses, key=lambda d: as_utc(d.created_at), reverse=True)[:HISTORY_ITEM_LIMIT]
        prescriptions = sorted(history.prescriptions, key=lambda p: as_utc(p.created_at), reverse=True)[:HISTORY_ITEM_LIMIT]
        medications = [m.name for p in prescriptions for m in p.medications][:HISTORY_ITEM_LIMIT]
        return (HISTORY_BLOCK
                .replace("{CONDITIONS}", ", ".join(d.condition for d in diagnoses) or "None")
                .replace("{MEDICATIONS}", ", ".join(medications) or "None")
                .replace("{APPOINTMENTS}", str(history.appointment_count)))

    def suggest(self, symptoms: Sequence[str], age: Optional[int] = None, gender: Optional[Gender] = None,
                history: Optional[PatientHistory] = None) -> SymptomSuggestion:
        if not self.gateway:
            return self.fallback(symptoms)
        prompt = self.build_prompt(symptoms, age, gender, history)
        try:
            raw = self.gateway.call(prompt)
        except GatewayUnavailable as e:
            logger.warning(f"Symptom suggestion falling back to rules: {e}")
            return self.fallback(symptoms)
        return self.from_text(raw)

    def from_text(self, raw: str) -> SymptomSuggestion:
        hints = parse_structured_hints(raw)
        conditions = [
            SuggestedCondition(label=line, confidence="N/A", icd_code=extract_icd_code(line))
            for line in hints.conditions
        ] or [EVALUATION_NEEDED.model_copy()]
        risk_level = parse_risk_level(raw)
        return SymptomSuggestion(
            conditions=conditions,
            risk_level=risk_level,
            suggested_tests=hints.tests,
            recommendations=hints.recommendations,
            warnings=warnings_for(risk_level),
            disclaimer=DISCLAIMER,
            used_fallback=False,
            raw_response=raw,
        )

    def fallback(self, symptoms: Sequence[str]) -> SymptomSuggestion:
        MetricsService.record_fallback("symptom_engine")
        text = ", ".join(symptoms).lower()
        matched = [rule for rule in FALLBACK_RULES if all(k in text for k in rule["keywords"])]

        if matched:
            conditions = [rule["condition"].model_copy() for rule in matched]
            tests = [t for rule in matched for t in rule["tests"]]
            # Rules are applied in table order; the last match sets the risk level.
            risk_level = matched[-1]["risk"]
        else:
            conditions = [EVALUATION_NEEDED.model_copy()]
            tests = list(FALLBACK_DEFAULT_TESTS)
            risk_level = RiskLevel.LOW

        return SymptomSuggestion(
            conditions=conditions,
            risk_level=risk_level,
            suggested_tests=tests,
            recommendations=list(FALLBACK_RECOMMENDATIONS),
            warnings=warnings_for(risk_level),
            disclaimer=DISCLAIMER,
            used_fallback=True,
            note=FALLBACK_NOTE,
        )
