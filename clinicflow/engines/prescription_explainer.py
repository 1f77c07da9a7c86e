import logging
from typing import Optional, Union

from clinicflow.engines.gateway_client import GatewayClient, GatewayUnavailable
from clinicflow.schemas.internal_models import ExplanationResult, Language, PrescriptionRecord
from clinicflow.services.metrics_service import MetricsService
from clinicflow.utils.time_utils import utc_now

logger = logging.getLogger("PrescriptionExplainer")

FALLBACK_NOTE = "AI service temporarily unavailable. Showing basic explanation."

LANGUAGE_DIRECTIVES = {
    Language.ENGLISH: "Please respond in English.",
    Language.URDU: "Please respond in Urdu (Roman Urdu or Urdu script).",
}

EXPLANATION_PROMPT = """As a medical AI assistant, explain this prescription in simple, patient-friendly {LANGUAGE_NAME}:

Prescription Details:
- Condition: {CONDITION}
- Medications: {MEDICATIONS}
- Instructions: {INSTRUCTIONS}
- Duration: {DURATION}

Please provide:
1. What each medication does (in simple terms)
2. Why it was prescribed
3. Important things to remember when taking it
4. Potential side effects to watch for
5. When to contact the doctor
6. Lifestyle recommendations (diet, exercise, rest, etc.)
7. Preventive advice to avoid recurrence

{LANGUAGE_DIRECTIVE}

Keep the explanation clear, concise, and easy to understand for a patient."""

ENGLISH_FALLBACK = """This prescription includes the following medications: {MEDICATIONS}.

Please follow the instructions provided by your doctor:
- {INSTRUCTIONS}

Important reminders:
- Take medications as prescribed
- Complete the full course unless advised otherwise
- Contact your doctor if you experience any unusual side effects
- Keep all medications out of reach of children

Lifestyle Recommendations:
- Maintain a balanced diet
- Stay hydrated
- Get adequate rest
- Follow up with your doctor as scheduled

Preventive Advice:
- Practice good hygiene
- Follow preventive measures as advised
- Monitor your symptoms
- Report any concerns promptly

If you have questions about your prescription, please contact your healthcare provider."""

URDU_FALLBACK = """یہ نسخہ مندرجہ ذیل ادویات پر مشتمل ہے: {MEDICATIONS}۔

براہ کرم اپنے ڈاکٹر کی دی گئی ہدایات پر عمل کریں:
- {INSTRUCTIONS}

اہم یاد دہانیاں:
- ادویات تجویز کردہ طریقے سے لیں
- مکمل کورس مکمل کریں جب تک کہ دوسری صورت میں مشورہ نہ دیا جائے
- اگر آپ کو کوئی غیر معمولی ضمنی اثرات محسوس ہوں تو اپنے ڈاکٹر سے رابطہ کریں
- تمام ادویات بچوں کی پہنچ سے دور رکھیں

اگر آپ کے نسخے کے بارے میں کوئی سوالات ہیں تو براہ کرم اپنے ہیلتھ کیئر فراہم کنندہ سے رابطہ کریں۔"""

FALLBACK_TEMPLATES = {
    Language.ENGLISH: ENGLISH_FALLBACK,
    Language.URDU: URDU_FALLBACK,
}


def render_medications(prescription: PrescriptionRecord) -> str:
    return ", ".join(f"{m.name} ({m.dosage}, {m.frequency}, {m.duration})" for m in prescription.medications)


class PrescriptionExplainer:
    def __init__(self, gateway: Optional[GatewayClient] = None):
        self.gateway = gateway

    def build_prompt(self, prescription: PrescriptionRecord, language: Language, condition: Optional[str] = None) -> str:
        first_duration = prescription.medications[0].duration if prescription.medications else None
        return (EXPLANATION_PROMPT
                .replace("{LANGUAGE_NAME}", "Urdu" if language == Language.URDU else "English")
                .replace("{CONDITION}", condition or "Not specified")
                .replace("{MEDICATIONS}", render_medications(prescription))
                .replace("{INSTRUCTIONS}", prescription.instructions)
                .replace("{DURATION}", first_duration or "As prescribed")
                .replace("{LANGUAGE_DIRECTIVE}", LANGUAGE_DIRECTIVES[language]))

    def explain(self, prescription: PrescriptionRecord, language: Union[Language, str] = Language.ENGLISH,
                condition: Optional[str] = None) -> ExplanationResult:
        language = Language(language)
        if not self.gateway:
            return self.fallback(prescription, language)
        try:
            text = self.gateway.call(self.build_prompt(prescription, language, condition))
        except GatewayUnavailable as e:
            logger.warning(f"Prescription {prescription.id} explanation falling back to template: {e}")
            return self.fallback(prescription, language)
        return ExplanationResult(text=text, language=language, used_fallback=False, generated_at=utc_now())

    def fallback(self, prescription: PrescriptionRecord, language: Language) -> ExplanationResult:
        MetricsService.record_fallback("prescription_explainer")
        medications = ", ".join(m.name for m in prescription.medications)
        text = (FALLBACK_TEMPLATES[language]
                .replace("{MEDICATIONS}", medications)
                .replace("{INSTRUCTIONS}", prescription.instructions))
        return ExplanationResult(
            text=text, language=language, used_fallback=True, note=FALLBACK_NOTE, generated_at=utc_now()
        )
