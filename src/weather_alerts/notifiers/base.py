"""Base notifier abstraction.

A notifier delivers one `AlertMessage` to one recipient over one channel.
Each call makes exactly one delivery attempt: no queueing and no retries.

## Error Contract

- Provider rejects the message (non-2xx): the notifier's `delivery_error`
  with the provider's status code
- Timeouts and network failures: the notifier's `delivery_error` with no
  status code
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from weather_alerts.exceptions import DeliveryError
from weather_alerts.models.alert import AlertMessage, AlertMethod, DeliveryReceipt

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Abstract base class for notification channels.

    Attributes:
        name: Provider name, recorded on receipts
        method: Alert method this notifier delivers
        delivery_error: Exception raised when the provider rejects a message
    """

    name: str
    method: AlertMethod
    delivery_error: type[DeliveryError] = DeliveryError

    def __init__(
        self,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the notifier.

        Args:
            timeout: Request timeout in seconds
            client: Shared HTTP client (not closed by this notifier)
        """
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> Notifier:
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST once to the provider.

        Raises:
            DeliveryError: On transport failure or non-success status
        """
        client = self._get_client()
        try:
            response = await client.post(url, timeout=self.timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise self.delivery_error(f"{self.name} request timed out: {e}") from e
        except httpx.TransportError as e:
            raise self.delivery_error(
                f"{self.name} request failed: {e or type(e).__name__}"
            ) from e

        if not response.is_success:
            logger.debug(
                f"{self.name} returned {response.status_code}: {response.text[:200]}"
            )
            raise self.delivery_error(
                f"{self.name} rejected the message (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        return response

    @abstractmethod
    async def send(self, recipient: str, message: AlertMessage) -> DeliveryReceipt:
        """Deliver a message to a recipient.

        Args:
            recipient: Channel-specific address (email or E.164 number)
            message: Subject and body to deliver

        Returns:
            DeliveryReceipt for the accepted message

        Raises:
            DeliveryError: If the provider does not accept the message
        """
        pass
