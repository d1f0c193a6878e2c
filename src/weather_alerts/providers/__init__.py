"""Weather data sources."""

from weather_alerts.providers.base import WeatherSource
from weather_alerts.providers.openweather import OpenWeatherSource

__all__ = [
    "WeatherSource",
    "OpenWeatherSource",
]
