import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from clinicflow.api.dependencies import get_record_store, get_risk_analyzer, get_symptom_engine, limiter
from clinicflow.config import settings
from clinicflow.engines.risk_engine import RiskFlagAnalyzer
from clinicflow.engines.symptom_engine import SymptomSuggestionEngine
from clinicflow.middleware.observability import get_correlation_id
from clinicflow.schemas.internal_models import PatientHistory
from clinicflow.schemas.request_schema import SymptomCheckRequest
from clinicflow.schemas.response_schema import ApiResponse
from clinicflow.services.metrics_service import MetricsService
from clinicflow.services.record_store import RecordStore
from clinicflow.utils.auth import require_role

router = APIRouter(prefix="/api/v1/doctors", tags=["doctors"])
logger = logging.getLogger("DoctorAPI")

HISTORY_FETCH_LIMIT = 10

def load_history(store: RecordStore, patient_id: str) -> Optional[PatientHistory]:
    try:
        diagnoses = store.get_diagnoses(patient_id, limit=HISTORY_FETCH_LIMIT)
        prescriptions = store.get_prescriptions(patient_id, limit=HISTORY_FETCH_LIMIT)
        appointments = store.get_appointments(patient_id, limit=HISTORY_FETCH_LIMIT)
    except Exception as e:
        logger.error(f"Failed to fetch patient history for AI: {e}")
        return None
    return PatientHistory(diagnoses=diagnoses, prescriptions=prescriptions, appointment_count=len(appointments))

@router.post("/ai-assistance")
@limiter.limit(settings.RATE_LIMIT)
async def ai_assistance(
    request: Request,
    body: SymptomCheckRequest,
    user: Dict[str, Any] = Depends(require_role(["doctor"])),
    store: RecordStore = Depends(get_record_store),
    engine: SymptomSuggestionEngine = Depends(get_symptom_engine),
) -> ApiResponse:
    history = None
    if body.patient_id:
        history = await asyncio.to_thread(load_history, store, body.patient_id)

    suggestion = await asyncio.to_thread(
        engine.suggest, body.symptoms, body.patient_age, body.patient_gender, history
    )
    if suggestion.used_fallback:
        logger.warning(f"[{get_correlation_id(request)}] AI assistance served from fallback rules")
    MetricsService.record_request("POST", "/api/v1/doctors/ai-assistance", 200)
    return ApiResponse(
        message="AI suggestions retrieved successfully",
        data=suggestion.model_dump(mode="json"),
    )

@router.get("/patient/{patient_id}/risk-flags")
@limiter.limit(settings.RATE_LIMIT)
async def patient_risk_flags(
    request: Request,
    patient_id: str,
    user: Dict[str, Any] = Depends(require_role(["doctor"])),
    store: RecordStore = Depends(get_record_store),
    analyzer: RiskFlagAnalyzer = Depends(get_risk_analyzer),
) -> ApiResponse:
    diagnoses = await asyncio.to_thread(store.get_diagnoses, patient_id)
    prescriptions = await asyncio.to_thread(store.get_prescriptions, patient_id)
    appointments = await asyncio.to_thread(store.get_appointments, patient_id)

    analysis = await asyncio.to_thread(analyzer.analyze, diagnoses, prescriptions, appointments)
    logger.info(f"[{get_correlation_id(request)}] Risk flags for patient {patient_id}: {len(analysis.flags)}")
    MetricsService.record_request("GET", "/api/v1/doctors/patient/{patient_id}/risk-flags", 200)
    return ApiResponse(
        message="Risk flags analyzed successfully",
        data=analysis.model_dump(mode="json"),
    )
