from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response
import time
import logging
import threading
from typing import Dict, Any

logger = logging.getLogger("MetricsService")

REQUEST_COUNT = Counter(
    "clinicflow_requests_total",
    "Total clinical AI requests",
    ["method", "endpoint", "status"]
)

LATENCY_HISTOGRAM = Histogram(
    "clinicflow_latency_seconds",
    "Latency of clinical components in seconds",
    ["component"]
)

ERROR_COUNT = Counter(
    "clinicflow_errors_total",
    "Total clinical component errors",
    ["component", "error_type"]
)

FALLBACK_COUNT = Counter(
    "clinicflow_fallbacks_total",
    "Results served from deterministic fallbacks",
    ["component"]
)

class MetricsService:
    _failure_history = {}
    # Engines record from worker threads while /health reads.
    _lock = threading.Lock()

    @staticmethod
    def record_latency(component: str, duration: float):
        LATENCY_HISTOGRAM.labels(component=component).observe(duration)

    @staticmethod
    def record_error(component: str, error_type: str):
        ERROR_COUNT.labels(component=component, error_type=error_type).inc()
        MetricsService._track_health(component, success=False)

    @staticmethod
    def record_request(method: str, endpoint: str, status: int):
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()

    @staticmethod
    def record_success(component: str):
        MetricsService._track_health(component, success=True)

    @staticmethod
    def record_fallback(component: str):
        FALLBACK_COUNT.labels(component=component).inc()

    @classmethod
    def _track_health(cls, component: str, success: bool):
        now = time.time()
        with cls._lock:
            history = [x for x in cls._failure_history.get(component, []) if now - x[0] < 600]
            history.append((now, success))
            cls._failure_history[component] = history
            data = list(history)

        if len(data) >= 10:
            failures = len([x for x in data if not x[1]])
            rate = failures / len(data)
            if rate > 0.1:
                logger.critical(f"CRITICAL_SYS_ALERT: {component} failure rate is {rate*100:.1f}%!")

    @classmethod
    def get_health_report(cls) -> Dict[str, Any]:
        with cls._lock:
            snapshot = {component: list(data) for component, data in cls._failure_history.items()}
        report = {}
        for component, data in snapshot.items():
            if not data: continue
            failures = len([x for x in data if not x[1]])
            report[component] = {
                "status": "UNHEALTHY" if (failures / len(data)) > 0.1 else "HEALTHY",
                "error_rate": f"{(failures / len(data)) * 100:.1f}%",
                "sample_size": len(data)
            }
        return report

def metrics_endpoint():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
