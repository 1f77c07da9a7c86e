import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from clinicflow.engines.gateway_client import GatewayClient, GatewayUnavailable
from clinicflow.schemas.internal_models import (
    AppointmentRecord, DiagnosisRecord, FlagSeverity, FlagType, PrescriptionRecord,
    PrescriptionStatus, RiskAnalysisResult, RiskFlag
)
from clinicflow.services.metrics_service import MetricsService
from clinicflow.utils.time_utils import as_utc, utc_now

logger = logging.getLogger("RiskEngine")

TIME_WINDOW_DAYS = 90
NARRATIVE_DIAGNOSIS_LIMIT = 10
NO_RISK_SUMMARY = "No significant risk patterns detected."

# (flag threshold, high-severity threshold)
REPEATED_CONDITION_THRESHOLDS = (3, 5)
CHRONIC_SYMPTOM_THRESHOLDS = (4, 6)
VISIT_FREQUENCY_THRESHOLDS = (5, 8)
ACTIVE_PRESCRIPTION_THRESHOLD = 5

SYMPTOM_VOCABULARY = [
    "fever", "cough", "pain", "headache", "nausea", "vomiting", "diarrhea",
    "fatigue", "dizziness", "shortness of breath", "chest pain", "abdominal pain",
]

RECOMMENDATIONS = {
    FlagType.REPEATED_INFECTION: "Consider specialist referral or comprehensive diagnostic workup.",
    FlagType.CHRONIC_SYMPTOM: "Consider chronic condition evaluation and long-term management plan.",
    FlagType.HIGH_FREQUENCY_VISITS: "Review overall health status and consider comprehensive health assessment.",
    FlagType.MULTIPLE_PRESCRIPTIONS: "Review medication interactions and consider medication reconciliation.",
}

NARRATIVE_PROMPT = """As a medical AI assistant, analyze these patient risk flags:

Risk Flags Detected:
{FLAG_SUMMARY}

Recent Diagnoses:
{RECENT_CONDITIONS}

Provide:
1. Overall risk assessment
2. Potential underlying causes
3. Recommended actions
4. Priority level

Keep response concise and actionable."""


def severity_for(count: int, thresholds) -> FlagSeverity:
    _, high_at = thresholds
    return FlagSeverity.HIGH if count >= high_at else FlagSeverity.MEDIUM

def extract_symptoms(description: str) -> List[str]:
    lowered = (description or "").lower()
    return [symptom for symptom in SYMPTOM_VOCABULARY if symptom in lowered]

def summarize_flags(flags: Sequence[RiskFlag]) -> str:
    if not flags:
        return NO_RISK_SUMMARY
    high = len([f for f in flags if f.severity == FlagSeverity.HIGH])
    medium = len([f for f in flags if f.severity == FlagSeverity.MEDIUM])
    if high > 0:
        return f"⚠️ {high} high-priority risk flag(s) detected. Immediate attention recommended."
    if medium > 0:
        return f"⚠️ {medium} medium-priority risk flag(s) detected. Review recommended."
    return f"{len(flags)} risk flag(s) detected."


class RiskFlagAnalyzer:
    def __init__(self, gateway: Optional[GatewayClient] = None):
        self.gateway = gateway

    def analyze(self, diagnoses: Sequence[DiagnosisRecord], prescriptions: Sequence[PrescriptionRecord],
                appointments: Sequence[AppointmentRecord], now: Optional[datetime] = None) -> RiskAnalysisResult:
        now = as_utc(now) if now else utc_now()
        cutoff = now - timedelta(days=TIME_WINDOW_DAYS)

        recent_diagnoses = [d for d in diagnoses if as_utc(d.created_at) >= cutoff]
        recent_appointments = [a for a in appointments if as_utc(a.start_time) >= cutoff]
        # Prescriptions are scoped by status only, regardless of age.
        active_prescriptions = [p for p in prescriptions if p.status == PrescriptionStatus.ACTIVE]

        flags = []
        flags.extend(self._repeated_condition_flags(recent_diagnoses))
        flags.extend(self._chronic_symptom_flags(recent_diagnoses))
        visit_flag = self._visit_frequency_flag(recent_appointments)
        if visit_flag:
            flags.append(visit_flag)
        prescription_flag = self._prescription_count_flag(active_prescriptions)
        if prescription_flag:
            flags.append(prescription_flag)

        if not flags:
            return RiskAnalysisResult(flags=[], ai_narrative=None, summary_message=NO_RISK_SUMMARY, analyzed_at=now)

        logger.info(f"Risk analysis produced {len(flags)} flag(s): {[f.type.value for f in flags]}")
        return RiskAnalysisResult(
            flags=flags,
            ai_narrative=self._narrative(flags, recent_diagnoses),
            summary_message=summarize_flags(flags),
            analyzed_at=now,
        )

    def _repeated_condition_flags(self, diagnoses: Sequence[DiagnosisRecord]) -> List[RiskFlag]:
        flag_at, _ = REPEATED_CONDITION_THRESHOLDS
        frequency = Counter(d.condition.lower() for d in diagnoses)
        return [
            RiskFlag(
                type=FlagType.REPEATED_INFECTION,
                severity=severity_for(count, REPEATED_CONDITION_THRESHOLDS),
                message=f'Patient has been diagnosed with "{condition}" {count} times in the last {TIME_WINDOW_DAYS} days. Consider further investigation.',
                recommendation=RECOMMENDATIONS[FlagType.REPEATED_INFECTION],
                condition=condition,
                frequency=count,
            )
            for condition, count in frequency.items() if count >= flag_at
        ]

    def _chronic_symptom_flags(self, diagnoses: Sequence[DiagnosisRecord]) -> List[RiskFlag]:
        flag_at, _ = CHRONIC_SYMPTOM_THRESHOLDS
        tally = Counter()
        for diagnosis in diagnoses:
            tally.update(extract_symptoms(diagnosis.description))
        return [
            RiskFlag(
                type=FlagType.CHRONIC_SYMPTOM,
                severity=severity_for(count, CHRONIC_SYMPTOM_THRESHOLDS),
                message=f'Recurring symptom pattern detected: "{symptom}" appears {count} times in recent diagnoses.',
                recommendation=RECOMMENDATIONS[FlagType.CHRONIC_SYMPTOM],
                symptom=symptom,
                frequency=count,
            )
            for symptom, count in tally.items() if count >= flag_at
        ]

    def _visit_frequency_flag(self, appointments: Sequence[AppointmentRecord]) -> Optional[RiskFlag]:
        flag_at, _ = VISIT_FREQUENCY_THRESHOLDS
        count = len(appointments)
        if count < flag_at:
            return None
        return RiskFlag(
            type=FlagType.HIGH_FREQUENCY_VISITS,
            severity=severity_for(count, VISIT_FREQUENCY_THRESHOLDS),
            message=f"Patient has {count} appointments in the last {TIME_WINDOW_DAYS} days.",
            recommendation=RECOMMENDATIONS[FlagType.HIGH_FREQUENCY_VISITS],
            visit_count=count,
        )

    def _prescription_count_flag(self, prescriptions: Sequence[PrescriptionRecord]) -> Optional[RiskFlag]:
        count = len(prescriptions)
        if count < ACTIVE_PRESCRIPTION_THRESHOLD:
            return None
        return RiskFlag(
            type=FlagType.MULTIPLE_PRESCRIPTIONS,
            severity=FlagSeverity.MEDIUM,
            message=f"Patient has {count} active prescriptions.",
            recommendation=RECOMMENDATIONS[FlagType.MULTIPLE_PRESCRIPTIONS],
            prescription_count=count,
        )

    def build_narrative_prompt(self, flags: Sequence[RiskFlag], diagnoses: Sequence[DiagnosisRecord]) -> str:
        flag_summary = "\n".join(f"{f.type.value}: {f.message}" for f in flags)
        newest_first = sorted(diagnoses, key=lambda d: as_utc(d.created_at), reverse=True)
        recent_conditions = ", ".join(d.condition for d in newest_first[:NARRATIVE_DIAGNOSIS_LIMIT])
        return (NARRATIVE_PROMPT
                .replace("{FLAG_SUMMARY}", flag_summary)
                .replace("{RECENT_CONDITIONS}", recent_conditions or "None"))

    def _narrative(self, flags: Sequence[RiskFlag], diagnoses: Sequence[DiagnosisRecord]) -> Optional[str]:
        if not self.gateway:
            return None
        try:
            return self.gateway.call(self.build_narrative_prompt(flags, diagnoses))
        except GatewayUnavailable as e:
            logger.warning(f"Risk narrative unavailable, returning flags only: {e}")
            MetricsService.record_fallback("risk_engine")
            return None
