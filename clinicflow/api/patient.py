import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from clinicflow.api.dependencies import get_prescription_explainer, get_record_store, limiter
from clinicflow.config import settings
from clinicflow.engines.prescription_explainer import PrescriptionExplainer
from clinicflow.schemas.internal_models import Language
from clinicflow.schemas.response_schema import ApiResponse
from clinicflow.services.metrics_service import MetricsService
from clinicflow.services.record_store import RecordStore
from clinicflow.utils.auth import get_user_id, require_role

router = APIRouter(prefix="/api/v1/patients", tags=["patients"])
logger = logging.getLogger("PatientAPI")

@router.get("/prescriptions/{prescription_id}/explanation")
@limiter.limit(settings.RATE_LIMIT)
async def prescription_explanation(
    request: Request,
    prescription_id: str,
    language: Language = Query(Language.ENGLISH),
    user: Dict[str, Any] = Depends(require_role(["patient"])),
    patient_id: str = Depends(get_user_id),
    store: RecordStore = Depends(get_record_store),
    explainer: PrescriptionExplainer = Depends(get_prescription_explainer),
) -> ApiResponse:
    prescription = await asyncio.to_thread(store.get_prescription, prescription_id, patient_id)
    if not prescription:
        raise HTTPException(status_code=404, detail="Prescription not found")

    condition = None
    if prescription.diagnosis_id:
        diagnosis = await asyncio.to_thread(store.get_diagnosis, prescription.diagnosis_id)
        condition = diagnosis.condition if diagnosis else None

    result = await asyncio.to_thread(explainer.explain, prescription, language, condition)
    MetricsService.record_request("GET", "/api/v1/patients/prescriptions/{prescription_id}/explanation", 200)
    return ApiResponse(
        message="Prescription explanation generated successfully",
        data={"prescription_id": prescription.id, **result.model_dump(mode="json")},
    )
