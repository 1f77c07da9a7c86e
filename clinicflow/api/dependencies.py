import logging
from slowapi import Limiter
from slowapi.util import get_remote_address

from clinicflow.config import settings
from clinicflow.engines.gateway_client import GatewayClient, GatewayConfig
from clinicflow.engines.prescription_explainer import PrescriptionExplainer
from clinicflow.engines.risk_engine import RiskFlagAnalyzer
from clinicflow.engines.symptom_engine import SymptomSuggestionEngine
from clinicflow.services.record_store import RecordStore

logger = logging.getLogger("Dependencies")

limiter = Limiter(key_func=get_remote_address)

gateway_config = GatewayConfig.from_settings(settings)
if not gateway_config.is_configured:
    logger.warning("Text-generation gateway not configured, AI features will use fallbacks.")
gateway_client = GatewayClient(gateway_config)

risk_analyzer = RiskFlagAnalyzer(gateway_client)
symptom_engine = SymptomSuggestionEngine(gateway_client)
prescription_explainer = PrescriptionExplainer(gateway_client)

def get_record_store() -> RecordStore:
    return RecordStore()

def get_risk_analyzer() -> RiskFlagAnalyzer:
    return risk_analyzer

def get_symptom_engine() -> SymptomSuggestionEngine:
    return symptom_engine

def get_prescription_explainer() -> PrescriptionExplainer:
    return prescription_explainer
