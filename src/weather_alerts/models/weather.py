"""Weather observation model.

Observations are the canonical shape every weather source translates its
response into. Units are metric: temperature in Celsius, wind speed in m/s,
humidity in percent.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class WeatherObservation(BaseModel):
    """Current observed conditions for a location.

    Only `temperature_c` is required; the remaining fields are carried for
    message composition and are not used by condition evaluation.
    """

    location: str = Field(..., description="Location key the observation was fetched for")
    temperature_c: float = Field(..., description="Air temperature in Celsius")
    feels_like_c: float | None = Field(default=None, description="Apparent temperature")
    relative_humidity_percent: float | None = Field(default=None, ge=0, le=100)
    wind_speed_ms: float | None = Field(default=None, ge=0)
    description: str | None = Field(
        default=None, description="Condition text, e.g. 'light rain'"
    )
    observed_at: datetime | None = None
    provider: str | None = None

    def format_summary(self) -> str:
        """Short human-readable summary of the observation."""
        parts = [f"{self.temperature_c:g}°C"]
        if self.description:
            parts.append(self.description)
        if self.relative_humidity_percent is not None:
            parts.append(f"{self.relative_humidity_percent:g}% humidity")
        if self.wind_speed_ms is not None:
            parts.append(f"wind {self.wind_speed_ms:g} m/s")
        return ", ".join(parts)
