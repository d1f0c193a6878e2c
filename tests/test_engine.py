"""Tests for the alert batch runner."""

import asyncio
import logging

import pytest

from fakes import FakeNotifier, FakeWeatherSource
from weather_alerts.database.store import AlertStore
from weather_alerts.exceptions import LoadError
from weather_alerts.models.alert import AlertMethod, AlertRule, UserContact
from weather_alerts.models.weather import WeatherObservation
from weather_alerts.notifiers import NotificationDispatcher
from weather_alerts.rules.engine import BatchRunner, compose_message


class UnreachableStore(AlertStore):
    """Store that cannot be reached."""

    async def load_rules(self) -> list[AlertRule]:
        raise LoadError("connection refused")


class BrokenStore(AlertStore):
    """Store failing with a non-LoadError exception."""

    async def load_rules(self) -> list[AlertRule]:
        raise ConnectionError("socket closed")


class ExplodingWeatherSource(FakeWeatherSource):
    """Weather source raising an unexpected exception for one location."""

    async def fetch(self, location: str) -> WeatherObservation:
        if location == "Atlantis":
            raise RuntimeError("boom")
        return await super().fetch(location)


class TestComposeMessage:
    """Tests for notification text."""

    def test_subject_and_body(self, paris_rule: AlertRule):
        """Test the message names the location, reading and condition."""
        observation = WeatherObservation(location="Paris", temperature_c=32.0)
        message = compose_message(paris_rule, observation)
        assert message.subject == "Weather Alert for Paris"
        assert message.body == (
            "Weather Alert: Current temperature in Paris is 32°C "
            "(temperature above 30°C)"
        )


class TestProcessRule:
    """Tests for single-rule processing."""

    @pytest.mark.asyncio
    async def test_email_rule_met(self, paris_rule, make_store, dispatcher, email_notifier):
        """Test Paris at 32°C triggers an email whose subject names Paris."""
        weather = FakeWeatherSource({"Paris": 32.0})
        runner = BatchRunner(make_store([paris_rule]), weather, dispatcher)

        outcome = await runner.process_rule(paris_rule)

        assert outcome.condition_met is True
        assert outcome.current_value == 32.0
        assert outcome.delivered is True
        assert outcome.error is None
        assert len(email_notifier.sent) == 1
        recipient, message = email_notifier.sent[0]
        assert recipient == "ada@example.com"
        assert "Paris" in message.subject

    @pytest.mark.asyncio
    async def test_sms_rule_not_met(
        self, oslo_rule, make_store, dispatcher, email_notifier, sms_notifier
    ):
        """Test Oslo at 5°C does not trigger a below-zero SMS alert."""
        weather = FakeWeatherSource({"Oslo": 5.0})
        runner = BatchRunner(make_store([oslo_rule]), weather, dispatcher)

        outcome = await runner.process_rule(oslo_rule)

        assert outcome.condition_met is False
        assert outcome.current_value == 5.0
        assert outcome.delivered is False
        assert outcome.error is None
        assert sms_notifier.sent == []
        assert email_notifier.sent == []

    @pytest.mark.asyncio
    async def test_sms_rule_met(self, oslo_rule, make_store, dispatcher, sms_notifier):
        """Test Oslo at -4°C sends an SMS to the user's phone."""
        weather = FakeWeatherSource({"Oslo": -4.0})
        runner = BatchRunner(make_store([oslo_rule]), weather, dispatcher)

        outcome = await runner.process_rule(oslo_rule)

        assert outcome.delivered is True
        assert sms_notifier.sent[0][0] == "+4712345678"

    @pytest.mark.asyncio
    async def test_sms_without_phone(self, make_rule, make_store, dispatcher, sms_notifier):
        """Test a met SMS rule with no phone is reported, not delivered."""
        rule = make_rule(
            "rule-nophone",
            location="Oslo",
            condition="temperature below 0",
            method="sms",
            contact=UserContact(email="ada@example.com", phone_number=None),
        )
        runner = BatchRunner(make_store([rule]), FakeWeatherSource({"Oslo": -1}), dispatcher)

        outcome = await runner.process_rule(rule)

        assert outcome.condition_met is True
        assert outcome.delivered is False
        assert outcome.error.kind == "MissingContactError"
        assert sms_notifier.sent == []

    @pytest.mark.asyncio
    async def test_observation_logged(self, paris_rule, make_store, dispatcher, caplog):
        """Test the fetched observation is summarized in the debug log."""
        runner = BatchRunner(make_store([paris_rule]), FakeWeatherSource({"Paris": 32.0}), dispatcher)

        with caplog.at_level(logging.DEBUG, logger="weather_alerts.rules.engine"):
            await runner.process_rule(paris_rule)

        assert "Alert rule-paris: Paris is 32°C" in caplog.text

    @pytest.mark.asyncio
    async def test_weather_failure_recorded(self, paris_rule, make_store, dispatcher):
        """Test a failed weather lookup is recorded with its status."""
        weather = FakeWeatherSource(failures={"Paris": 404})
        runner = BatchRunner(make_store([paris_rule]), weather, dispatcher)

        outcome = await runner.process_rule(paris_rule)

        assert outcome.error.kind == "WeatherLookupError"
        assert outcome.error.status_code == 404
        assert outcome.condition_met is False

    @pytest.mark.asyncio
    async def test_malformed_condition_recorded(self, make_rule, make_store, dispatcher):
        """Test a bad stored condition is recorded against the rule."""
        rule = make_rule("rule-bad", condition="temperature sideways 3")
        runner = BatchRunner(make_store([rule]), FakeWeatherSource(), dispatcher)

        outcome = await runner.process_rule(rule)

        assert outcome.error.kind == "MalformedConditionError"

    @pytest.mark.asyncio
    async def test_unknown_method_recorded(self, make_rule, make_store, dispatcher):
        """Test an unknown delivery method is recorded, not ignored."""
        rule = make_rule("rule-pigeon", method="pigeon")
        runner = BatchRunner(make_store([rule]), FakeWeatherSource({"Paris": 35}), dispatcher)

        outcome = await runner.process_rule(rule)

        assert outcome.condition_met is True
        assert outcome.error.kind == "UnsupportedMethod"

    @pytest.mark.asyncio
    async def test_delivery_failure_recorded(self, paris_rule, make_store, sms_notifier):
        """Test a provider rejection is recorded with its status code."""
        failing_email = FakeNotifier(AlertMethod.EMAIL, fail_with_status=401)
        dispatcher = NotificationDispatcher([failing_email, sms_notifier])
        weather = FakeWeatherSource({"Paris": 31})
        runner = BatchRunner(make_store([paris_rule]), weather, dispatcher)

        outcome = await runner.process_rule(paris_rule)

        assert outcome.delivered is False
        assert outcome.error.kind == "EmailDeliveryError"
        assert outcome.error.status_code == 401

    @pytest.mark.asyncio
    async def test_unexpected_exception_recorded(self, make_rule, make_store, dispatcher):
        """Test an unexpected exception is contained to its rule."""
        rule = make_rule("rule-atlantis", location="Atlantis")
        runner = BatchRunner(make_store([rule]), ExplodingWeatherSource(), dispatcher)

        outcome = await runner.process_rule(rule)

        assert outcome.error.kind == "UnexpectedError"
        assert outcome.error.message == "boom"


class TestRunBatch:
    """Tests for whole-batch runs."""

    @pytest.mark.asyncio
    async def test_mixed_batch(self, paris_rule, oslo_rule, make_store, dispatcher):
        """Test counts for one met and one unmet rule."""
        weather = FakeWeatherSource({"Paris": 32.0, "Oslo": 5.0})
        runner = BatchRunner(make_store([paris_rule, oslo_rule]), weather, dispatcher)

        result = await runner.run_batch()

        assert result.processed == 2
        assert result.conditions_met == 1
        assert result.sent == 1
        assert result.failed == 0
        assert result.message == "Alerts checked successfully"
        assert result.finished_at is not None
        assert sorted(weather.calls) == ["Oslo", "Paris"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_concurrency", [1, 4])
    async def test_fault_isolation(self, make_rule, make_store, dispatcher, email_notifier, max_concurrency):
        """Test one failing weather lookup leaves the other rules untouched."""
        rules = [make_rule(f"rule-{i}", location=f"City{i}") for i in range(5)]
        temperatures = {f"City{i}": 35.0 for i in range(5)}
        weather = FakeWeatherSource(temperatures, failures={"City2": 503})
        runner = BatchRunner(
            make_store(rules), weather, dispatcher, max_concurrency=max_concurrency
        )

        result = await runner.run_batch()

        assert result.processed == 5
        assert result.failed == 1
        assert result.sent == 4
        assert result.errors[0].rule_id == "rule-2"
        assert result.errors[0].kind == "WeatherLookupError"
        ok = [o for o in result.outcomes if o.ok]
        assert len(ok) == 4
        assert all(o.delivered for o in ok)
        assert len(email_notifier.sent) == 4

    @pytest.mark.asyncio
    async def test_every_failure_kind_reported(self, make_rule, make_store, sms_notifier):
        """Test fetch, evaluation and dispatch failures are all reported."""
        rules = [
            make_rule("fetch", location="Nowhere"),
            make_rule("eval", condition="pressure above 1000"),
            make_rule("dispatch"),
        ]
        weather = FakeWeatherSource({"Paris": 40.0}, failures={"Nowhere": None})
        failing_email = FakeNotifier(AlertMethod.EMAIL, fail_with_status=500)
        dispatcher = NotificationDispatcher([failing_email, sms_notifier])
        runner = BatchRunner(make_store(rules), weather, dispatcher)

        result = await runner.run_batch()

        kinds = {e.rule_id: e.kind for e in result.errors}
        assert kinds == {
            "fetch": "WeatherLookupError",
            "eval": "UnsupportedMetricError",
            "dispatch": "EmailDeliveryError",
        }
        assert result.processed == 3
        assert result.sent == 0

    @pytest.mark.asyncio
    async def test_empty_store(self, make_store, dispatcher):
        """Test a batch over no rules."""
        runner = BatchRunner(make_store([]), FakeWeatherSource(), dispatcher)

        result = await runner.run_batch()

        assert result.processed == 0
        assert result.summary() == {
            "message": "Alerts checked successfully",
            "processed": 0,
            "conditions_met": 0,
            "sent": 0,
            "failed": 0,
        }

    @pytest.mark.asyncio
    async def test_store_unreachable(self, dispatcher):
        """Test an unreachable store aborts the batch before any lookup."""
        weather = FakeWeatherSource()
        runner = BatchRunner(UnreachableStore(), weather, dispatcher)

        with pytest.raises(LoadError):
            await runner.run_batch()
        assert weather.calls == []

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, dispatcher):
        """Test other store failures surface as LoadError."""
        runner = BatchRunner(BrokenStore(), FakeWeatherSource(), dispatcher)

        with pytest.raises(LoadError, match="socket closed"):
            await runner.run_batch()

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_rule, make_store, dispatcher):
        """Test no more than max_concurrency rules run at once."""
        active = 0
        peak = 0

        class SlowWeatherSource(FakeWeatherSource):
            async def fetch(self, location):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return await super().fetch(location)

        rules = [make_rule(f"rule-{i}", condition="temperature above 100") for i in range(10)]
        runner = BatchRunner(make_store(rules), SlowWeatherSource(), dispatcher, max_concurrency=3)

        result = await runner.run_batch()

        assert result.processed == 10
        assert peak <= 3

    def test_rejects_zero_concurrency(self, make_store, dispatcher):
        """Test max_concurrency must be positive."""
        with pytest.raises(ValueError):
            BatchRunner(make_store([]), FakeWeatherSource(), dispatcher, max_concurrency=0)
