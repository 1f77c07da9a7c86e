from clinicflow.middleware.logging_middleware import setup_logging
setup_logging()

from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from clinicflow.api.dependencies import gateway_client, gateway_config, limiter
from clinicflow.api.doctor import router as doctor_router
from clinicflow.api.patient import router as patient_router
from clinicflow.middleware.error_handler import register_exception_handlers
from clinicflow.middleware.logging_middleware import logging_middleware
from clinicflow.middleware.observability import TracingMiddleware
from clinicflow.services.metrics_service import MetricsService, metrics_endpoint
from clinicflow.config import settings

logger = logging.getLogger("ClinicFlowApp")

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    gateway_client.close()
    logger.info("Gateway HTTP client closed")

app = FastAPI(
    lifespan=lifespan,
    title="ClinicFlow Clinical AI API",
    version=settings.VERSION_MANIFEST["api"],
    docs_url="/docs"
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

app.middleware("http")(logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added last so it wraps everything and request logs carry the correlation id.
app.add_middleware(TracingMiddleware)

@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "ai_gateway": "configured" if gateway_config.is_configured else "fallback_only",
        "versions": settings.VERSION_MANIFEST,
        "components": MetricsService.get_health_report(),
    }

@app.get("/metrics")
def get_metrics():
    return metrics_endpoint()

app.include_router(doctor_router)
app.include_router(patient_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
