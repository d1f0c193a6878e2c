"""Base weather source abstraction.

This module defines the interface for weather data sources and the canonical
format they translate their responses into.

## Canonical Data Format

All weather sources return a `weather_alerts.models.weather.WeatherObservation`.
Units are metric: temperature in Celsius, wind speed in m/s, humidity in %.

## Error Contract

- Non-success HTTP status: `WeatherLookupError(location, status_code)`
- Timeouts and network failures: `WeatherLookupError(location)` with no status
- A response that is not a valid observation (e.g. no temperature):
  `WeatherParseError`

Sources make exactly one request per lookup. They do not retry; a failed
lookup is reported against the rule and the next scheduled run tries again.

## Supported Sources

### OpenWeatherMap (openweathermap.org)
- Endpoint: https://api.openweathermap.org/data/2.5/weather
- Auth: API key in `appid` query parameter
- Lookup: free-text location via `q`, `units=metric`
- Key response path: main.temp
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from weather_alerts.exceptions import WeatherLookupError, WeatherParseError
from weather_alerts.models.weather import WeatherObservation

logger = logging.getLogger(__name__)


class WeatherSource(ABC):
    """Abstract base class for weather data sources.

    Subclasses implement `fetch` for their API and translate the response
    into a `WeatherObservation`. An `httpx.AsyncClient` may be injected
    (tests pass one built on `httpx.MockTransport`); otherwise the source
    creates and owns its client.

    Example:
        ```python
        class MySource(WeatherSource):
            name = "my_source"
            base_url = "https://api.example.com"

            async def fetch(self, location):
                response = await self._fetch(location, f"{self.base_url}/now")
                return self._translate_response(response.json(), location)
        ```
    """

    name: str
    base_url: str
    requires_api_key: bool = False

    def __init__(
        self,
        api_key: str | None = None,
        user_agent: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the source.

        Args:
            api_key: API key if required by the provider
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
            client: Shared HTTP client (not closed by this source)
        """
        if self.requires_api_key and not api_key:
            raise ValueError(f"{self.name} requires an API key")
        self.api_key = api_key
        self.user_agent = user_agent or "weather-alerts/0.1.0"
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> WeatherSource:
        """Enter async context manager."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    async def _fetch(
        self,
        location: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform a single GET request against the provider.

        Args:
            location: Location being looked up (for error reporting)
            url: Full URL to fetch
            params: Query parameters
            headers: Additional headers

        Returns:
            HTTP response with a 2xx status

        Raises:
            WeatherLookupError: On transport failure or non-success status
        """
        client = self._get_client()
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        try:
            response = await client.get(
                url, params=params, headers=request_headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise WeatherLookupError(location, detail=f"timed out: {e}") from e
        except httpx.TransportError as e:
            raise WeatherLookupError(location, detail=str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.debug(
                f"{self.name} returned {response.status_code} for {location!r}: "
                f"{response.text[:200]}"
            )
            raise WeatherLookupError(
                location,
                status_code=response.status_code,
                detail=response.reason_phrase,
            )

        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body.

        Raises:
            WeatherParseError: If the body is not a JSON object
        """
        try:
            data = response.json()
        except ValueError as e:
            raise WeatherParseError(f"Response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise WeatherParseError("Response is not a JSON object")
        return data

    @abstractmethod
    async def fetch(self, location: str) -> WeatherObservation:
        """Get current conditions for a location.

        Args:
            location: Free-text location, used verbatim as the lookup key

        Returns:
            Observation in canonical format

        Raises:
            WeatherLookupError: If the provider lookup fails
            WeatherParseError: If the response is not a valid observation
        """
        pass

    @abstractmethod
    def _translate_response(
        self,
        response_data: dict[str, Any],
        location: str,
    ) -> WeatherObservation:
        """Translate provider-specific response to canonical format.

        Args:
            response_data: Raw JSON response from provider
            location: Location the response belongs to

        Returns:
            WeatherObservation in canonical format

        Raises:
            WeatherParseError: If required fields are missing
        """
        pass
