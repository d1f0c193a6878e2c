"""Database module for the alert rule store.

This module provides:
- SQLAlchemy async database connection
- User and alert models
- The AlertStore interface read by the batch runner
"""

from weather_alerts.database.connection import (
    close_db,
    create_tables,
    get_session_factory,
    init_db,
)
from weather_alerts.database.models import Alert, Base, User
from weather_alerts.database.store import (
    AlertStore,
    InMemoryAlertStore,
    SqlAlchemyAlertStore,
)

__all__ = [
    # Connection
    "init_db",
    "close_db",
    "create_tables",
    "get_session_factory",
    # Models
    "Base",
    "User",
    "Alert",
    # Store
    "AlertStore",
    "InMemoryAlertStore",
    "SqlAlchemyAlertStore",
]
