"""Payment event webhook client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import Dict, Any
from finflow_gateway.config import settings
from finflow_gateway.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class PaymentWebhookClient:
    """Client for notifying downstream consumers (notification center, sync) about payments"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.payment_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_payment_event(self, payload: Dict[str, Any]) -> None:
        """
        Send PAYMENT_CONFIRMED event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on HTTP errors and network failures
        - Raises after max_retries; the payment itself is already committed

        Args:
            payload: Event data
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logging.error(
                            f"Payment webhook failed after {attempt} attempts: {e}",
                            extra={"event": payload.get("event"), "target_id": payload.get("target_id")},
                        )
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
