"""Pytest fixtures for weather alerts tests.

This module provides test fixtures that ensure:
1. No external API calls are made (weather, email and SMS providers)
2. No real database connections in unit tests
3. Isolated test environment with controlled configuration
"""

import os

import pytest

# Set test environment BEFORE importing application modules
# This ensures no real services are contacted during test collection
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENWEATHER_API_KEY", "test-openweather-key")
os.environ.setdefault("SENDGRID_API_KEY", "test-sendgrid-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACtest")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-twilio-token")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15005550006")
os.environ.setdefault("DEBUG", "true")

from weather_alerts.database.store import InMemoryAlertStore
from weather_alerts.models.alert import AlertMethod, AlertRule, UserContact
from weather_alerts.models.weather import WeatherObservation
from weather_alerts.notifiers import NotificationDispatcher

from fakes import FakeNotifier


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from weather_alerts.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def email_notifier() -> FakeNotifier:
    return FakeNotifier(AlertMethod.EMAIL)


@pytest.fixture
def sms_notifier() -> FakeNotifier:
    return FakeNotifier(AlertMethod.SMS)


@pytest.fixture
def dispatcher(email_notifier: FakeNotifier, sms_notifier: FakeNotifier) -> NotificationDispatcher:
    """Dispatcher wired to recording notifiers."""
    return NotificationDispatcher([email_notifier, sms_notifier])


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_contact() -> UserContact:
    return UserContact(email="ada@example.com", phone_number="+4712345678")


@pytest.fixture
def sample_observation() -> WeatherObservation:
    """Sample observation with typical mild conditions."""
    return WeatherObservation(
        location="Paris",
        temperature_c=22.0,
        feels_like_c=23.0,
        relative_humidity_percent=60.0,
        wind_speed_ms=3.5,
        description="scattered clouds",
    )


@pytest.fixture
def paris_rule(sample_contact: UserContact) -> AlertRule:
    """Email rule that triggers when Paris is hotter than 30°C."""
    return AlertRule(
        id="rule-paris",
        user_id="user-1",
        location="Paris",
        condition="temperature above 30°C",
        method="email",
        contact=sample_contact,
    )


@pytest.fixture
def oslo_rule(sample_contact: UserContact) -> AlertRule:
    """SMS rule that triggers when Oslo drops below freezing."""
    return AlertRule(
        id="rule-oslo",
        user_id="user-1",
        location="Oslo",
        condition="temperature below 0",
        method="sms",
        contact=sample_contact,
    )


@pytest.fixture
def make_rule(sample_contact: UserContact):
    """Factory for alert rules with sensible defaults."""

    def _make(
        rule_id: str,
        location: str = "Paris",
        condition: str = "temperature above 30°C",
        method: str = "email",
        contact: UserContact | None = None,
    ) -> AlertRule:
        return AlertRule(
            id=rule_id,
            user_id="user-1",
            location=location,
            condition=condition,
            method=method,
            contact=contact or sample_contact,
        )

    return _make


@pytest.fixture
def make_store():
    """Factory for in-memory alert stores."""

    def _make(rules: list[AlertRule]) -> InMemoryAlertStore:
        return InMemoryAlertStore(rules)

    return _make
