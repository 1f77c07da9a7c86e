import re
from typing import List, Optional
from pydantic import BaseModel, Field
from clinicflow.schemas.internal_models import RiskLevel

MAX_HINTS_PER_SECTION = 5

NUMBERED_LINE = re.compile(r"^\d+\.")
BULLET_LINE = re.compile(r"^[-•]")
ICD10_CODE = re.compile(r"\b([A-TV-Z][0-9]{2}(?:\.[0-9A-Z]{1,4})?)\b")

# Checked top to bottom; first hit wins.
RISK_KEYWORDS = [
    (("critical", "emergency"), RiskLevel.CRITICAL),
    (("high risk", "severe"), RiskLevel.HIGH),
    (("medium", "moderate"), RiskLevel.MEDIUM),
    (("low",), RiskLevel.LOW),
]
DEFAULT_RISK_LEVEL = RiskLevel.MEDIUM


class StructuredHints(BaseModel):
    conditions: List[str] = Field(default_factory=list)
    tests: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


def _is_condition(line: str) -> bool:
    return "condition" in line.lower() or bool(NUMBERED_LINE.match(line))

def _is_test(line: str) -> bool:
    lowered = line.lower()
    return "test" in lowered or "lab" in lowered

def _is_recommendation(line: str) -> bool:
    return "recommend" in line.lower() or bool(BULLET_LINE.match(line))


def parse_structured_hints(text: str) -> StructuredHints:
    """Scans free text line by line into condition, test and recommendation hints.

    The three categories are matched independently, so one line can land in
    more than one list. Source order is preserved and each list is capped.
    Patterns are tested against the raw line; stored entries are stripped.
    """
    hints = StructuredHints()
    for line in (text or "").split("\n"):
        if _is_condition(line) and len(hints.conditions) < MAX_HINTS_PER_SECTION:
            hints.conditions.append(line.strip())
        if _is_test(line) and len(hints.tests) < MAX_HINTS_PER_SECTION:
            hints.tests.append(line.strip())
        if _is_recommendation(line) and len(hints.recommendations) < MAX_HINTS_PER_SECTION:
            hints.recommendations.append(line.strip())
    return hints


def parse_risk_level(text: str) -> RiskLevel:
    lowered = (text or "").lower()
    for keywords, level in RISK_KEYWORDS:
        if any(k in lowered for k in keywords):
            return level
    return DEFAULT_RISK_LEVEL


def extract_icd_code(line: str) -> Optional[str]:
    match = ICD10_CODE.search(line or "")
    return match.group(1) if match else None
