"""Alert rule, delivery and batch summary models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AlertMethod(str, Enum):
    """Channels an alert can be delivered over."""

    EMAIL = "email"
    SMS = "sms"


class UserContact(BaseModel):
    """Contact details of the user owning an alert rule (read-only)."""

    email: str | None = None
    phone_number: str | None = None


class AlertRule(BaseModel):
    """A user's standing watch condition, joined with their contact details.

    Rules are created and deleted by the rule store; the batch runner only
    reads them. `condition` keeps the stored free-text form, e.g.
    "temperature above 30°C", and `method` keeps the raw stored value so an
    unknown method is reported per rule instead of failing the whole load.
    """

    id: str
    user_id: str
    location: str
    condition: str
    method: str
    contact: UserContact = Field(default_factory=UserContact)


class DeliveryReceipt(BaseModel):
    """Proof that a provider accepted a notification."""

    method: AlertMethod
    recipient: str
    provider: str
    status_code: int
    message_id: str | None = None
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorDescriptor(BaseModel):
    """Serializable description of a per-rule failure."""

    kind: str
    message: str
    status_code: int | None = None


class EvaluationOutcome(BaseModel):
    """Result of processing one alert rule within a batch."""

    rule_id: str
    condition_met: bool = False
    current_value: float | None = None
    delivered: bool = False
    receipt: DeliveryReceipt | None = None
    error: ErrorDescriptor | None = None

    @property
    def ok(self) -> bool:
        """True if the rule was processed without an error."""
        return self.error is None


class RuleErrorEntry(BaseModel):
    """A per-rule error as listed in the batch summary."""

    rule_id: str
    kind: str
    message: str
    status_code: int | None = None


class BatchResult(BaseModel):
    """Summary of one batch run over all alert rules."""

    message: str = "Alerts checked successfully"
    processed: int = 0
    conditions_met: int = 0
    sent: int = 0
    outcomes: list[EvaluationOutcome] = Field(default_factory=list)
    errors: list[RuleErrorEntry] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def failed(self) -> int:
        """Number of rules that ended in an error."""
        return len(self.errors)

    @classmethod
    def fold(cls, outcomes: list[EvaluationOutcome], **kwargs: Any) -> BatchResult:
        """Aggregate per-rule outcomes into a batch summary."""
        result = cls(**kwargs)
        for outcome in outcomes:
            result.outcomes.append(outcome)
            result.processed += 1
            if outcome.condition_met:
                result.conditions_met += 1
            if outcome.delivered:
                result.sent += 1
            if outcome.error is not None:
                result.errors.append(
                    RuleErrorEntry(
                        rule_id=outcome.rule_id,
                        kind=outcome.error.kind,
                        message=outcome.error.message,
                        status_code=outcome.error.status_code,
                    )
                )
        result.finished_at = datetime.now(timezone.utc)
        return result

    def summary(self) -> dict[str, Any]:
        """Compact JSON-serializable summary for the invocation response."""
        return {
            "message": self.message,
            "processed": self.processed,
            "conditions_met": self.conditions_met,
            "sent": self.sent,
            "failed": self.failed,
        }


class AlertMessage(BaseModel):
    """Notification content composed for a triggered rule."""

    subject: str
    body: str
