import logging
import time
from fastapi import Request
from pythonjsonlogger import jsonlogger
from clinicflow.config import settings
from clinicflow.middleware.observability import CorrelationIdFilter

def setup_logging():
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(correlation_id)s %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL)

async def logging_middleware(request: Request, call_next):
    start_time = time.time()
    logger = logging.getLogger("Middleware")
    logger.info(f"Incoming Request: {request.method} {request.url.path}")
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Request Failed: {e}")
        raise
    process_time = time.time() - start_time
    logger.info(f"Request Completed: {response.status_code} (Time: {process_time:.4f}s)")
    return response
