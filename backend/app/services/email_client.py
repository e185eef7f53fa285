"""HTTP email transport.

Messages are POSTed as ``{"to", "subject", "html"}`` JSON to the configured
endpoint with a bearer credential. Delivery is best effort: failures are
logged and reported as ``False``, never raised.
"""
import logging
from typing import Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailClient:
    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.endpoint_url = endpoint_url if endpoint_url is not None else settings.NOTIFY_ENDPOINT_URL
        self.api_key = api_key if api_key is not None else settings.NOTIFY_API_KEY
        self.timeout = timeout or settings.NOTIFY_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.endpoint_url)

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.configured:
            logger.warning("NOTIFY_ENDPOINT_URL not configured, skipping email")
            return False

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.endpoint_url,
                    json={"to": to, "subject": subject, "html": html},
                    headers=headers,
                )
            if response.is_error:
                logger.error(f"Email send error for {to}: {response.status_code} {response.text}")
                return False
            return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False
