from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional


class DiagnosisSeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    CRITICAL = "critical"

class PrescriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    COMPLETED = "completed"

class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class FlagType(str, Enum):
    REPEATED_INFECTION = "repeated_infection"
    CHRONIC_SYMPTOM = "chronic_symptom"
    HIGH_FREQUENCY_VISITS = "high_frequency_visits"
    MULTIPLE_PRESCRIPTIONS = "multiple_prescriptions"

class FlagSeverity(str, Enum):
    # LOW is never assigned by the current thresholds.
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

class Language(str, Enum):
    ENGLISH = "english"
    URDU = "urdu"


class DiagnosisRecord(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    condition: str
    severity_level: DiagnosisSeverity = DiagnosisSeverity.MILD
    description: str = ""
    created_at: datetime

class Medication(BaseModel):
    name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None

class PrescriptionRecord(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    diagnosis_id: Optional[str] = None
    medications: List[Medication]
    instructions: str
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE
    refills_allowed: int = 0
    created_at: datetime
    expires_at: Optional[datetime] = None

class AppointmentRecord(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    start_time: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED


class RiskFlag(BaseModel):
    type: FlagType
    severity: FlagSeverity
    message: str
    recommendation: str
    condition: Optional[str] = None
    symptom: Optional[str] = None
    frequency: Optional[int] = None
    visit_count: Optional[int] = None
    prescription_count: Optional[int] = None

class RiskAnalysisResult(BaseModel):
    flags: List[RiskFlag] = Field(default_factory=list)
    ai_narrative: Optional[str] = None
    summary_message: str
    analyzed_at: datetime


class PatientHistory(BaseModel):
    diagnoses: List[DiagnosisRecord] = Field(default_factory=list)
    prescriptions: List[PrescriptionRecord] = Field(default_factory=list)
    appointment_count: int = 0

class SuggestedCondition(BaseModel):
    label: str
    confidence: str = "N/A"
    icd_code: Optional[str] = None

class SymptomSuggestion(BaseModel):
    conditions: List[SuggestedCondition]
    risk_level: RiskLevel
    suggested_tests: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    disclaimer: str
    used_fallback: bool = False
    note: Optional[str] = None
    raw_response: Optional[str] = None

class ExplanationResult(BaseModel):
    text: str
    language: Language
    used_fallback: bool = False
    note: Optional[str] = None
    generated_at: datetime
