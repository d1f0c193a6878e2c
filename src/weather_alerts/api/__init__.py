"""FastAPI application and routes.

This module provides the HTTP invocation surface for the alert checker.

## API Structure

- POST /check-weather-alerts - Run one alert check (GET also accepted)
- OPTIONS /check-weather-alerts - CORS pre-flight
- GET /health - Liveness

## Responses

- 200 `{"message": "Alerts checked successfully", ...counts}`
- 500 `{"error": "..."}` only when the alert store is unreachable
"""

from weather_alerts.api.app import create_app

__all__ = ["create_app"]
