from clinicflow.schemas.internal_models import RiskLevel

SEVERITY_ORDER = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.CRITICAL: 4
}

def get_severity_score(risk_level: RiskLevel) -> int:
    return SEVERITY_ORDER.get(risk_level, 0)

def is_urgent(risk_level: RiskLevel) -> bool:
    return get_severity_score(risk_level) >= get_severity_score(RiskLevel.HIGH)
