import logging
import time
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from supabase import Client, create_client

from clinicflow.config import settings
from clinicflow.schemas.internal_models import AppointmentRecord, DiagnosisRecord, PrescriptionRecord
from clinicflow.services.metrics_service import MetricsService

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordStore:
    """Read-only access to the clinical record tables.

    Queries never write. Without Supabase credentials every lookup returns an
    empty result so the API keeps serving rule-based output.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(RecordStore, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, '_initialized'):
            self._init_client()
            self._initialized = True

    def _init_client(self):
        self.url = settings.SUPABASE_URL
        self.key = settings.SUPABASE_KEY
        self.client: Optional[Client] = None
        if self.url and self.key:
            try:
                self.client = create_client(self.url, self.key)
            except Exception as e:
                logger.error(f"Failed to initialize Supabase: {e}")
        else:
            logger.warning("Supabase credentials missing, record store disabled")

    def _with_retry(self, func: Callable[[], Any], max_retries: int = 2) -> Any:
        for attempt in range(max_retries + 1):
            try:
                res = func()
                MetricsService.record_success("record_store")
                return res
            except Exception as e:
                if attempt < max_retries:
                    wait = (2 ** attempt)
                    logger.warning(f"Record store retry {attempt+1}/{max_retries}: {e}")
                    time.sleep(wait)
                else:
                    MetricsService.record_error("record_store", type(e).__name__)
                    raise

    def _rows(self, table: str, filters: Dict[str, Any], order_by: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if not self.client:
            return []

        def query():
            q = self.client.table(table).select("*")
            for column, value in filters.items():
                q = q.eq(column, value)
            q = q.order(order_by, desc=True)
            if limit:
                q = q.limit(limit)
            return q.execute()

        response = self._with_retry(query)
        return response.data or []

    def _parse(self, model: Type[RecordT], rows: List[Dict[str, Any]]) -> List[RecordT]:
        records = []
        for row in rows:
            try:
                records.append(model.model_validate(row))
            except ValidationError as e:
                logger.error(f"Skipping malformed {model.__name__} row {row.get('id')}: {e.error_count()} error(s)")
        return records

    def get_diagnoses(self, patient_id: str, limit: Optional[int] = None) -> List[DiagnosisRecord]:
        rows = self._rows("diagnoses", {"patient_id": patient_id}, "created_at", limit)
        return self._parse(DiagnosisRecord, rows)

    def get_prescriptions(self, patient_id: str, limit: Optional[int] = None) -> List[PrescriptionRecord]:
        rows = self._rows("prescriptions", {"patient_id": patient_id}, "created_at", limit)
        return self._parse(PrescriptionRecord, rows)

    def get_appointments(self, patient_id: str, limit: Optional[int] = None) -> List[AppointmentRecord]:
        rows = self._rows("appointments", {"patient_id": patient_id}, "start_time", limit)
        return self._parse(AppointmentRecord, rows)

    def get_prescription(self, prescription_id: str, patient_id: str) -> Optional[PrescriptionRecord]:
        rows = self._rows("prescriptions", {"id": prescription_id, "patient_id": patient_id}, "created_at", 1)
        parsed = self._parse(PrescriptionRecord, rows)
        return parsed[0] if parsed else None

    def get_diagnosis(self, diagnosis_id: str) -> Optional[DiagnosisRecord]:
        rows = self._rows("diagnoses", {"id": diagnosis_id}, "created_at", 1)
        parsed = self._parse(DiagnosisRecord, rows)
        return parsed[0] if parsed else None

    def get_user_role(self, user_id: str) -> Optional[str]:
        rows = self._rows("user_profiles", {"id": user_id}, "id", 1)
        return rows[0].get("role") if rows else None
