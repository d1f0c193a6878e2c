"""Batch runner for weather alert rules.

One batch run loads every stored alert rule and, for each rule
independently:

1. fetches current weather for the rule's location,
2. parses and evaluates the rule's condition,
3. if the condition is met, notifies the owner over the rule's method.

Every rule produces exactly one `EvaluationOutcome`. A failure at any step
ends processing for that rule only: it is logged with the rule id, recorded
on the outcome, and the batch moves on. The outcomes are then folded into a
single `BatchResult`. The only error that escapes `run_batch` is `LoadError`,
raised when the rule store itself cannot be read.

Rules are processed concurrently, bounded by `max_concurrency`. Each task
returns its own outcome; no state is shared between rules.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from weather_alerts.config import Settings
from weather_alerts.database.store import AlertStore
from weather_alerts.exceptions import LoadError, RuleError
from weather_alerts.models.alert import (
    AlertMessage,
    AlertRule,
    BatchResult,
    ErrorDescriptor,
    EvaluationOutcome,
)
from weather_alerts.models.weather import WeatherObservation
from weather_alerts.notifiers import (
    NotificationDispatcher,
    SendGridEmailNotifier,
    TwilioSmsNotifier,
)
from weather_alerts.providers.base import WeatherSource
from weather_alerts.providers.openweather import OpenWeatherSource
from weather_alerts.rules.conditions import evaluate, observed_value, parse_condition

logger = logging.getLogger(__name__)


def compose_message(rule: AlertRule, observation: WeatherObservation) -> AlertMessage:
    """Compose the notification for a rule whose condition is met."""
    return AlertMessage(
        subject=f"Weather Alert for {rule.location}",
        body=(
            f"Weather Alert: Current temperature in {rule.location} is "
            f"{observation.temperature_c:g}°C ({rule.condition})"
        ),
    )


class BatchRunner:
    """Evaluates all alert rules and dispatches notifications.

    Example:
        ```python
        runner = BatchRunner(store, weather, dispatcher)
        result = await runner.run_batch()
        print(result.summary())
        ```
    """

    def __init__(
        self,
        store: AlertStore,
        weather: WeatherSource,
        dispatcher: NotificationDispatcher,
        max_concurrency: int = 8,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.store = store
        self.weather = weather
        self.dispatcher = dispatcher
        self.max_concurrency = max_concurrency
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings, store: AlertStore) -> BatchRunner:
        """Build a runner with the configured providers.

        All providers share one HTTP client, closed by `aclose()`.
        """
        client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        weather = OpenWeatherSource(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout=settings.http_timeout_seconds,
            client=client,
        )
        dispatcher = NotificationDispatcher(
            [
                SendGridEmailNotifier(
                    api_key=settings.sendgrid_api_key,
                    from_email=settings.alert_from_email,
                    base_url=settings.sendgrid_base_url,
                    timeout=settings.http_timeout_seconds,
                    client=client,
                ),
                TwilioSmsNotifier(
                    account_sid=settings.twilio_account_sid,
                    auth_token=settings.twilio_auth_token,
                    from_number=settings.twilio_phone_number,
                    base_url=settings.twilio_base_url,
                    timeout=settings.http_timeout_seconds,
                    client=client,
                ),
            ]
        )
        runner = cls(store, weather, dispatcher, max_concurrency=settings.max_concurrency)
        runner._client = client
        return runner

    async def aclose(self) -> None:
        """Release HTTP resources held by the runner's providers."""
        await self.weather.aclose()
        await self.dispatcher.aclose()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def run_batch(self) -> BatchResult:
        """Run one pass over all alert rules.

        Returns:
            BatchResult summarizing every rule's outcome

        Raises:
            LoadError: If the rule store cannot be read
        """
        started_at = datetime.now(timezone.utc)

        try:
            rules = await self.store.load_rules()
        except LoadError as e:
            logger.error(f"Alert check aborted: {e}")
            raise
        except Exception as e:
            logger.error(f"Alert check aborted, rule store failed: {e}")
            raise LoadError(f"Alert store unreachable: {e}") from e

        logger.info(f"Checking {len(rules)} alert rules")

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(rule: AlertRule) -> EvaluationOutcome:
            async with semaphore:
                return await self.process_rule(rule)

        outcomes = await asyncio.gather(*(bounded(rule) for rule in rules))
        result = BatchResult.fold(list(outcomes), started_at=started_at)

        logger.info(
            f"Alert check finished: {result.processed} processed, "
            f"{result.conditions_met} met, {result.sent} sent, {result.failed} failed"
        )
        return result

    async def process_rule(self, rule: AlertRule) -> EvaluationOutcome:
        """Process a single rule. Never raises for rule-level failures.

        Args:
            rule: Alert rule joined with its owner's contact

        Returns:
            EvaluationOutcome, with `error` set if any step failed
        """
        outcome = EvaluationOutcome(rule_id=rule.id)

        try:
            observation = await self.weather.fetch(rule.location)
            logger.debug(
                f"Alert {rule.id}: {rule.location} is {observation.format_summary()}"
            )

            condition = parse_condition(rule.condition)
            outcome.current_value = observed_value(condition.metric, observation)
            outcome.condition_met = evaluate(condition, observation)
            if not outcome.condition_met:
                return outcome

            message = compose_message(rule, observation)
            outcome.receipt = await self.dispatcher.send(rule.method, rule.contact, message)
            outcome.delivered = True
            logger.info(f"Alert {rule.id}: {outcome.receipt.method.value} notification sent")
        except RuleError as e:
            logger.warning(f"Alert {rule.id}: {e.kind}: {e}")
            outcome.error = e.describe()
        except Exception as e:
            logger.exception(f"Alert {rule.id}: unexpected error")
            outcome.error = ErrorDescriptor(
                kind="UnexpectedError",
                message=str(e) or type(e).__name__,
            )

        return outcome
