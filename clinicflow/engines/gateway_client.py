import logging
import time
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel

from clinicflow.core.response_shapes import resolve_response_shape
from clinicflow.services.metrics_service import MetricsService

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 15000
DEFAULT_RETRIES = 1
BACKOFF_STEP_SECONDS = 1.0


class GatewayUnavailable(Exception):
    """The text-generation gateway could not produce a completion."""

class GatewayConfigurationError(GatewayUnavailable):
    pass

class GatewayRequestError(GatewayUnavailable):
    pass


class GatewayConfig(BaseModel):
    api_key: str = ""
    url: str = ""
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.url)

    @classmethod
    def from_settings(cls, settings: Any) -> "GatewayConfig":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            url=settings.GEMINI_API_URL,
            timeout_ms=settings.GEMINI_TIMEOUT_MS,
            retries=settings.GEMINI_RETRIES,
        )


class GatewayClient:
    def __init__(self, config: GatewayConfig, http_client: Optional[httpx.Client] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.http_client = http_client or httpx.Client()
        self._sleep = sleep

    def _post(self, prompt: str, timeout_s: float) -> Any:
        response = self.http_client.post(
            self.config.url,
            params={"key": self.config.api_key},
            json={"prompt": prompt},
            timeout=timeout_s,
        )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError:
            return response.text

    def call(self, prompt: str, timeout_ms: Optional[int] = None, retries: Optional[int] = None) -> str:
        if not self.config.is_configured:
            raise GatewayConfigurationError("AI service not configured")

        timeout_s = (timeout_ms if timeout_ms is not None else self.config.timeout_ms) / 1000.0
        max_retries = retries if retries is not None else self.config.retries

        for attempt in range(max_retries + 1):
            start = time.time()
            try:
                body = self._post(prompt, timeout_s)
            except httpx.HTTPError as e:
                MetricsService.record_error("gateway", type(e).__name__)
                if attempt >= max_retries:
                    logger.error(f"Gateway request failed after {attempt + 1} attempt(s): {e}")
                    raise GatewayRequestError("AI service temporarily unavailable") from e
                wait = BACKOFF_STEP_SECONDS * (attempt + 1)
                logger.warning(f"Gateway Retry {attempt + 1}/{max_retries} after {wait}s due to: {e}")
                self._sleep(wait)
                continue

            MetricsService.record_latency("gateway", time.time() - start)
            MetricsService.record_success("gateway")
            resolved = resolve_response_shape(body)
            logger.debug(f"Gateway response resolved as {resolved.shape.value}")
            return resolved.text

        raise GatewayRequestError("AI service temporarily unavailable")

    def close(self):
        self.http_client.close()
