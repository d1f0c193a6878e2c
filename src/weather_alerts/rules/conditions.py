"""Alert conditions.

Alert rules store their condition as free text of the form
``"<metric> <comparator> <threshold><unit>"``, for example
``"temperature above 30°C"``. `parse_condition` turns that text into a
structured `Condition`, and `evaluate` checks a `Condition` against a
`WeatherObservation`.

Both functions are pure: they perform no I/O and hold no state, so the same
inputs always give the same answer.

Example:
    ```python
    condition = parse_condition("temperature above 30°C")
    # Condition(metric="temperature", comparator=Comparator.ABOVE, threshold=30.0)

    evaluate(condition, observation)  # observation.temperature_c > 30.0
    ```
"""

from __future__ import annotations

import math
import re
from enum import Enum

from pydantic import BaseModel, Field

from weather_alerts.exceptions import MalformedConditionError, UnsupportedMetricError
from weather_alerts.models.weather import WeatherObservation

# Leading numeric part of the threshold token ("30°C" -> "30", "-2.5C" -> "-2.5")
_THRESHOLD_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


class Metric(str, Enum):
    """Weather metrics a condition can be evaluated on."""

    TEMPERATURE = "temperature"


class Comparator(str, Enum):
    """How the observed value is compared to the threshold."""

    ABOVE = "above"
    BELOW = "below"


class Condition(BaseModel):
    """A parsed alert condition.

    `metric` keeps the name as written so that a rule naming a metric we do
    not know yet still parses; it is rejected when evaluated.
    """

    metric: str = Field(..., min_length=1, description="Metric name, e.g. 'temperature'")
    comparator: Comparator
    threshold: float
    unit: str = Field(default="", description="Unit suffix as written, e.g. '°C'")

    def to_legacy(self) -> str:
        """Render the condition in its stored free-text form."""
        return f"{self.metric} {self.comparator.value} {self.threshold:g}{self.unit}"


def parse_condition(raw: str) -> Condition:
    """Parse a stored condition string.

    Args:
        raw: Condition text, e.g. "temperature below 0°C"

    Returns:
        Structured Condition

    Raises:
        MalformedConditionError: If the text has fewer than three tokens, the
            comparator is not "above"/"below", or the threshold has no
            leading finite number
    """
    tokens = (raw or "").split()
    if len(tokens) < 3:
        raise MalformedConditionError(
            f"Condition {raw!r} must have the form '<metric> <above|below> <threshold>'"
        )

    metric, comparator_token, threshold_token = tokens[0], tokens[1], tokens[2]

    try:
        comparator = Comparator(comparator_token.lower())
    except ValueError:
        raise MalformedConditionError(
            f"Unknown comparator {comparator_token!r} in condition {raw!r}"
        ) from None

    match = _THRESHOLD_PREFIX.match(threshold_token)
    if match is None:
        raise MalformedConditionError(
            f"Threshold {threshold_token!r} in condition {raw!r} is not a number"
        )
    threshold = float(match.group(0))
    if not math.isfinite(threshold):
        raise MalformedConditionError(
            f"Threshold {threshold_token!r} in condition {raw!r} is not finite"
        )

    return Condition(
        metric=metric.lower(),
        comparator=comparator,
        threshold=threshold,
        unit=threshold_token[match.end():],
    )


def observed_value(metric: str, observation: WeatherObservation) -> float:
    """Look up the observed value for a metric.

    Raises:
        UnsupportedMetricError: If the metric cannot be evaluated
    """
    extractors = {
        Metric.TEMPERATURE: lambda o: o.temperature_c,
    }

    try:
        extractor = extractors[Metric(metric)]
    except (ValueError, KeyError):
        raise UnsupportedMetricError(
            f"Metric {metric!r} is not supported "
            f"(supported: {', '.join(m.value for m in Metric)})"
        ) from None
    return extractor(observation)


def evaluate(condition: Condition, observation: WeatherObservation) -> bool:
    """Evaluate a condition against an observation.

    Args:
        condition: Parsed condition
        observation: Current conditions at the rule's location

    Returns:
        True if the observed value is strictly above (or below) the threshold

    Raises:
        UnsupportedMetricError: If the condition's metric is not supported
    """
    actual = observed_value(condition.metric, observation)

    comparisons = {
        Comparator.ABOVE: lambda a, t: a > t,
        Comparator.BELOW: lambda a, t: a < t,
    }
    return comparisons[condition.comparator](actual, condition.threshold)
