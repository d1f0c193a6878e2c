"""Domain models for weather alerts."""

from weather_alerts.models.alert import (
    AlertMessage,
    AlertMethod,
    AlertRule,
    BatchResult,
    DeliveryReceipt,
    ErrorDescriptor,
    EvaluationOutcome,
    RuleErrorEntry,
    UserContact,
)
from weather_alerts.models.weather import WeatherObservation

__all__ = [
    # Alerts
    "AlertMethod",
    "AlertRule",
    "UserContact",
    # Delivery
    "AlertMessage",
    "DeliveryReceipt",
    # Batch
    "BatchResult",
    "ErrorDescriptor",
    "EvaluationOutcome",
    "RuleErrorEntry",
    # Weather
    "WeatherObservation",
]
