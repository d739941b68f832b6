"""Delivery of enriched payloads to the ingestion endpoint"""
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from logging_config import get_logger, log_delivery
from ..errors import DeliveryError


logger = get_logger(__name__)

SUCCESS_STATUS_CODES = (200, 204)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt"""
    ok: bool
    status_code: Optional[int] = None
    error: Optional[DeliveryError] = None
    duration_seconds: float = 0.0


class HTTPForwarder:
    """Single synchronous POST per payload, no retries.

    ``deliver`` reports failures through ``DeliveryResult`` instead of
    raising, so callers map outcomes to responses directly.
    """

    def __init__(self, url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.client = httpx.Client(timeout=timeout, transport=transport)

    def deliver(self, payload: bytes) -> DeliveryResult:
        """POST the payload and classify the response"""
        start_time = time.time()
        try:
            response = self.client.post(
                self.url,
                content=payload,
                headers={"Content-Type": "text/plain"}
            )
        except httpx.HTTPError as e:
            error = DeliveryError(f"error forwarding to {self.url}: {e}")
            return DeliveryResult(ok=False, error=error, duration_seconds=time.time() - start_time)

        duration = time.time() - start_time
        if response.status_code not in SUCCESS_STATUS_CODES:
            error = DeliveryError(
                f"unexpected status code {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text
            )
            return DeliveryResult(ok=False, status_code=response.status_code, error=error, duration_seconds=duration)

        log_delivery(logger, self.url, response.status_code, len(payload), duration)
        return DeliveryResult(ok=True, status_code=response.status_code, duration_seconds=duration)

    def close(self) -> None:
        """Release pooled connections"""
        self.client.close()
