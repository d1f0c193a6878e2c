"""Alert rule store.

Reads every alert rule joined with its owner's contact details. The batch
runner depends on the `AlertStore` interface only, so tests can substitute
an in-memory store.

A store that cannot be reached raises `LoadError`, the one condition that
aborts a batch run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from weather_alerts.database.models import Alert
from weather_alerts.exceptions import LoadError
from weather_alerts.models.alert import AlertRule, UserContact

logger = logging.getLogger(__name__)


class AlertStore(ABC):
    """Read access to stored alert rules."""

    @abstractmethod
    async def load_rules(self) -> list[AlertRule]:
        """Load all alert rules with their users' contact details.

        Raises:
            LoadError: If the store is unreachable
        """
        pass


class SqlAlchemyAlertStore(AlertStore):
    """Alert store backed by the `alerts` and `users` tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load_rules(self) -> list[AlertRule]:
        stmt = select(Alert).options(selectinload(Alert.user)).order_by(Alert.created_at)
        try:
            async with self._session_factory() as session:
                alerts = (await session.scalars(stmt)).all()
        except (SQLAlchemyError, OSError) as e:
            raise LoadError(f"Alert store unreachable: {e}") from e

        rules = [self._to_rule(alert) for alert in alerts]
        logger.debug(f"Loaded {len(rules)} alert rules")
        return rules

    @staticmethod
    def _to_rule(alert: Alert) -> AlertRule:
        """Translate a database row into the read-only rule model."""
        user = alert.user
        contact = UserContact(
            email=user.email if user else None,
            phone_number=user.phone_number if user else None,
        )
        return AlertRule(
            id=str(alert.id),
            user_id=str(alert.user_id),
            location=alert.location,
            condition=alert.condition,
            method=alert.method,
            contact=contact,
        )


class InMemoryAlertStore(AlertStore):
    """Alert store over a fixed list of rules (local runs and tests)."""

    def __init__(self, rules: list[AlertRule] | None = None):
        self._rules = list(rules or [])

    async def load_rules(self) -> list[AlertRule]:
        return list(self._rules)
