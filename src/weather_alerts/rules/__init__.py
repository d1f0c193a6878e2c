"""Condition evaluation and the alert batch runner."""

from weather_alerts.rules.conditions import (
    Comparator,
    Condition,
    Metric,
    evaluate,
    parse_condition,
)
from weather_alerts.rules.engine import BatchRunner, compose_message

__all__ = [
    "BatchRunner",
    "compose_message",
    "Comparator",
    "Condition",
    "Metric",
    "evaluate",
    "parse_condition",
]
