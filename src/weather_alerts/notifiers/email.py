"""SendGrid email notifier.

Sends plain-text mail through the SendGrid v3 Mail Send API.

- Endpoint: POST https://api.sendgrid.com/v3/mail/send
- Auth: `Authorization: Bearer <api key>`
- Success: 202 Accepted, empty body, message id in `X-Message-Id`
"""

from __future__ import annotations

from typing import Any

import httpx

from weather_alerts.exceptions import EmailDeliveryError
from weather_alerts.models.alert import AlertMessage, AlertMethod, DeliveryReceipt
from weather_alerts.notifiers.base import Notifier


class SendGridEmailNotifier(Notifier):
    """Email delivery via SendGrid."""

    name = "sendgrid"
    method = AlertMethod.EMAIL
    delivery_error = EmailDeliveryError
    base_url = "https://api.sendgrid.com/v3"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        base_url: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        if not api_key:
            raise ValueError("SendGrid requires an API key")
        self.api_key = api_key
        self.from_email = from_email
        if base_url:
            self.base_url = base_url.rstrip("/")

    def build_payload(self, recipient: str, message: AlertMessage) -> dict[str, Any]:
        """Build the Mail Send request body."""
        return {
            "personalizations": [{"to": [{"email": recipient}]}],
            "from": {"email": self.from_email},
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.body}],
        }

    async def send(self, recipient: str, message: AlertMessage) -> DeliveryReceipt:
        response = await self._post(
            f"{self.base_url}/mail/send",
            json=self.build_payload(recipient, message),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        return DeliveryReceipt(
            method=self.method,
            recipient=recipient,
            provider=self.name,
            status_code=response.status_code,
            message_id=response.headers.get("X-Message-Id"),
        )
