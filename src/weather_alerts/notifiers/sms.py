"""Twilio SMS notifier.

Sends text messages through the Twilio Programmable Messaging REST API.

- Endpoint: POST https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json
- Auth: HTTP basic auth with account SID and auth token
- Body: form-encoded `To`, `From`, `Body`
- Success: 201 Created, JSON body with the message `sid`
"""

from __future__ import annotations

import httpx

from weather_alerts.exceptions import SmsDeliveryError
from weather_alerts.models.alert import AlertMessage, AlertMethod, DeliveryReceipt
from weather_alerts.notifiers.base import Notifier

# Twilio rejects bodies longer than this
MAX_BODY_LENGTH = 1600


class TwilioSmsNotifier(Notifier):
    """SMS delivery via Twilio."""

    name = "twilio"
    method = AlertMethod.SMS
    delivery_error = SmsDeliveryError
    base_url = "https://api.twilio.com/2010-04-01"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(timeout=timeout, client=client)
        if not account_sid or not auth_token:
            raise ValueError("Twilio requires an account SID and auth token")
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        if base_url:
            self.base_url = base_url.rstrip("/")

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/Accounts/{self.account_sid}/Messages.json"

    async def send(self, recipient: str, message: AlertMessage) -> DeliveryReceipt:
        # SMS has no subject line; the body already names the location
        response = await self._post(
            self.messages_url,
            data={
                "To": recipient,
                "From": self.from_number,
                "Body": message.body[:MAX_BODY_LENGTH],
            },
            auth=(self.account_sid, self.auth_token),
        )

        message_id = None
        try:
            sid = response.json().get("sid")
        except (ValueError, AttributeError):
            sid = None
        if sid is not None:
            message_id = str(sid)

        return DeliveryReceipt(
            method=self.method,
            recipient=recipient,
            provider=self.name,
            status_code=response.status_code,
            message_id=message_id,
        )
