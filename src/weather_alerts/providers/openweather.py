"""OpenWeatherMap current weather source.

## API Documentation Summary
Source: https://openweathermap.org/current

## Endpoint
- Base URL: https://api.openweathermap.org/data/2.5/weather
- Full URL example:
  https://api.openweathermap.org/data/2.5/weather?q=Paris&units=metric&appid=KEY

## Authentication
- API key required, passed as the `appid` query parameter

## Request Parameters
| Parameter | Description |
|-----------|-------------|
| q | City name, optionally with state and country code ("Paris,FR") |
| units | metric (Celsius, m/s) - always requested |
| appid | API key |

## Response Format
```json
{
  "name": "Paris",
  "dt": 1718445600,
  "weather": [{"id": 800, "main": "Clear", "description": "clear sky"}],
  "main": {"temp": 32.1, "feels_like": 33.0, "humidity": 40, "pressure": 1012},
  "wind": {"speed": 3.6, "deg": 220}
}
```

## Variable Translation (OpenWeatherMap metric units -> Canonical)
| OpenWeatherMap Field | Canonical Field | Unit | Notes |
|----------------------|-----------------|------|-------|
| main.temp | temperature_c | °C | Required |
| main.feels_like | feels_like_c | °C | Optional |
| main.humidity | relative_humidity_percent | % | Optional |
| wind.speed | wind_speed_ms | m/s | Optional |
| weather[0].description | description | text | Optional |
| dt | observed_at | Unix seconds | Convert to datetime |
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from weather_alerts.exceptions import WeatherParseError
from weather_alerts.models.weather import WeatherObservation
from weather_alerts.providers.base import WeatherSource


def _unix_to_datetime(timestamp: int | float | None) -> datetime | None:
    """Convert Unix timestamp to datetime, or None if out of range."""
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _number(
    value: Any, low: float | None = None, high: float | None = None
) -> float | None:
    """Return value as a finite float within [low, high], or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    if (low is not None and value < low) or (high is not None and value > high):
        return None
    return float(value)


def _description(weather: Any) -> str | None:
    """First `weather[].description` if it is text."""
    if not isinstance(weather, list) or not weather:
        return None
    first = weather[0]
    if not isinstance(first, dict):
        return None
    description = first.get("description")
    return description if isinstance(description, str) else None


class OpenWeatherSource(WeatherSource):
    """OpenWeatherMap current weather source.

    Example:
        ```python
        async with OpenWeatherSource(api_key="your-api-key") as source:
            observation = await source.fetch("Paris")
        ```
    """

    name = "openweathermap"
    base_url = "https://api.openweathermap.org/data/2.5"
    requires_api_key = True

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize OpenWeatherMap source.

        Args:
            api_key: OpenWeatherMap API key
            base_url: Override the API base URL
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
            client: Shared HTTP client
        """
        super().__init__(
            api_key=api_key, user_agent=user_agent, timeout=timeout, client=client
        )
        if base_url:
            self.base_url = base_url.rstrip("/")

    async def fetch(self, location: str) -> WeatherObservation:
        """Get current weather from OpenWeatherMap.

        Args:
            location: Free-text location, passed verbatim as `q`

        Returns:
            WeatherObservation in canonical format

        Raises:
            WeatherLookupError: If the request fails or returns non-2xx
            WeatherParseError: If the response has no numeric temperature
        """
        params = {
            "q": location,
            "units": "metric",
            "appid": self.api_key,
        }
        response = await self._fetch(location, f"{self.base_url}/weather", params=params)
        return self._translate_response(self._json(response), location)

    def _translate_response(
        self,
        response_data: dict[str, Any],
        location: str,
    ) -> WeatherObservation:
        """Translate OpenWeatherMap response to canonical format.

        See module docstring for the field mapping.
        """
        main = response_data.get("main")
        if not isinstance(main, dict):
            raise WeatherParseError(f"Response for {location!r} has no 'main' block")

        temp_c = _number(main.get("temp"))
        if temp_c is None:
            raise WeatherParseError(
                f"Response for {location!r} has no numeric temperature (main.temp)"
            )

        # Optional extras that do not fit the model are dropped, not fatal
        wind = response_data.get("wind")
        if not isinstance(wind, dict):
            wind = {}

        try:
            return WeatherObservation(
                location=location,
                temperature_c=temp_c,
                feels_like_c=_number(main.get("feels_like")),
                relative_humidity_percent=_number(main.get("humidity"), 0, 100),
                wind_speed_ms=_number(wind.get("speed"), low=0),
                description=_description(response_data.get("weather")),
                observed_at=_unix_to_datetime(_number(response_data.get("dt"))),
                provider=self.name,
            )
        except ValidationError as e:
            raise WeatherParseError(
                f"Response for {location!r} is not a valid observation: {e}"
            ) from e
