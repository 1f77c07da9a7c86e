from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from clinicflow.schemas.internal_models import Gender

class SymptomCheckRequest(BaseModel):
    symptoms: List[str] = Field(..., min_length=1)
    patient_age: Optional[int] = Field(None, ge=0, le=130)
    patient_gender: Optional[Gender] = None
    patient_id: Optional[str] = None

    @field_validator("symptoms")
    @classmethod
    def strip_blank_symptoms(cls, value: List[str]) -> List[str]:
        cleaned = [s.strip() for s in value if s and s.strip()]
        if not cleaned:
            raise ValueError("Symptoms must be a non-empty array")
        return cleaned

    model_config = {
        "json_schema_extra": {
            "example": {
                "symptoms": ["fever", "dry cough"],
                "patient_age": 34,
                "patient_gender": "female",
                "patient_id": "6650c1f2a1b2c3d4e5f60718"
            }
        }
    }
