"""Exception hierarchy for weather alerts.

All exceptions inherit from WeatherAlertError. Only two kinds are fatal:

- ConfigError: raised at startup when credentials are missing
- LoadError: raised when the alert rule store cannot be read

Everything else derives from RuleError and is scoped to a single alert rule.
The batch runner catches RuleError at the per-rule boundary and folds it into
the batch summary via `describe()`:

    try:
        observation = await weather.fetch(rule.location)
    except RuleError as e:
        outcome = EvaluationOutcome(rule_id=rule.id, error=e.describe())
"""

from __future__ import annotations

from weather_alerts.models.alert import ErrorDescriptor


class WeatherAlertError(Exception):
    """Base exception for all weather alert errors."""


class ConfigError(WeatherAlertError):
    """Raised when required configuration is missing or invalid."""


class LoadError(WeatherAlertError):
    """Raised when the alert rule store is unreachable.

    This is the only error that aborts a batch run.
    """


class RuleError(WeatherAlertError):
    """Base exception for failures scoped to one alert rule."""

    kind: str = "RuleError"
    status_code: int | None = None

    def describe(self) -> ErrorDescriptor:
        """Describe this error for the batch summary."""
        return ErrorDescriptor(
            kind=self.kind,
            message=str(self),
            status_code=self.status_code,
        )


class WeatherLookupError(RuleError):
    """Raised when the weather provider returns a non-success response."""

    kind = "WeatherLookupError"

    def __init__(self, location: str, status_code: int | None = None, detail: str = ""):
        message = f"Weather lookup failed for {location!r}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.location = location
        self.status_code = status_code


class WeatherParseError(RuleError):
    """Raised when a provider response is not a valid observation."""

    kind = "WeatherParseError"


class MalformedConditionError(RuleError):
    """Raised when a stored condition string cannot be parsed."""

    kind = "MalformedConditionError"


class UnsupportedMetricError(RuleError):
    """Raised when a condition names a metric we cannot evaluate."""

    kind = "UnsupportedMetricError"


class MissingContactError(RuleError):
    """Raised when the user has no usable contact for the rule's method."""

    kind = "MissingContactError"


class UnsupportedMethodError(RuleError):
    """Raised when a rule names a delivery method we do not support."""

    kind = "UnsupportedMethod"


class DeliveryError(RuleError):
    """Raised when a notification provider rejects a delivery."""

    kind = "DeliveryError"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmailDeliveryError(DeliveryError):
    """Raised when the email provider fails to accept a message."""

    kind = "EmailDeliveryError"


class SmsDeliveryError(DeliveryError):
    """Raised when the SMS provider fails to accept a message."""

    kind = "SmsDeliveryError"
