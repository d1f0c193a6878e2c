"""Notification dispatch for triggered alert rules.

Routes alerts to the channel the rule was configured with:
- "email": plain-text mail via SendGrid
- "sms": text message via Twilio

The dispatcher validates the user's contact details before any provider is
called and makes exactly one delivery attempt per call.
"""

from __future__ import annotations

__all__ = [
    "NotificationDispatcher",
    "Notifier",
    "SendGridEmailNotifier",
    "TwilioSmsNotifier",
]

import logging

from weather_alerts.config import E164_PATTERN
from weather_alerts.exceptions import MissingContactError, UnsupportedMethodError
from weather_alerts.models.alert import (
    AlertMessage,
    AlertMethod,
    DeliveryReceipt,
    UserContact,
)
from weather_alerts.notifiers.base import Notifier
from weather_alerts.notifiers.email import SendGridEmailNotifier
from weather_alerts.notifiers.sms import TwilioSmsNotifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Routes alert messages to the notifier for each alert method."""

    def __init__(self, notifiers: list[Notifier]):
        self._notifiers: dict[AlertMethod, Notifier] = {n.method: n for n in notifiers}

    async def aclose(self) -> None:
        for notifier in self._notifiers.values():
            await notifier.aclose()

    def resolve_recipient(self, method: AlertMethod, contact: UserContact) -> str:
        """Pick and validate the recipient address for a method.

        Raises:
            MissingContactError: If the contact has no usable address
        """
        if method == AlertMethod.EMAIL:
            email = (contact.email or "").strip()
            if not email:
                raise MissingContactError("User has no email address for email alert")
            return email

        phone = (contact.phone_number or "").strip()
        if not phone:
            raise MissingContactError("User has no phone number for SMS alert")
        if not E164_PATTERN.match(phone):
            raise MissingContactError(
                f"User phone number {phone!r} is not a valid E.164 number"
            )
        return phone

    async def send(
        self,
        method: AlertMethod | str,
        contact: UserContact,
        message: AlertMessage,
    ) -> DeliveryReceipt:
        """Send a message over the given method.

        Args:
            method: Delivery method from the alert rule
            contact: Owning user's contact details
            message: Composed alert message

        Returns:
            DeliveryReceipt from the provider

        Raises:
            UnsupportedMethodError: If no notifier handles the method
            MissingContactError: If the contact has no usable address
            EmailDeliveryError: If the email provider rejects the message
            SmsDeliveryError: If the SMS provider rejects the message
        """
        try:
            method = AlertMethod(method.strip().lower())
        except ValueError:
            raise UnsupportedMethodError(f"Unsupported alert method {method!r}") from None

        notifier = self._notifiers.get(method)
        if notifier is None:
            raise UnsupportedMethodError(f"No notifier configured for {method.value!r}")

        recipient = self.resolve_recipient(method, contact)
        receipt = await notifier.send(recipient, message)
        logger.debug(f"{notifier.name} accepted message {receipt.message_id}")
        return receipt
