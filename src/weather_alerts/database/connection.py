"""Engine and session factory for the alert rule store.

The store is read-only for a batch run: the runner only needs a session
factory to hand to `SqlAlchemyAlertStore`.

```python
from weather_alerts.database import get_session_factory, init_db
from weather_alerts.database.store import SqlAlchemyAlertStore

await init_db()
store = SqlAlchemyAlertStore(get_session_factory())
```

`DATABASE_POOL_SIZE` and `DATABASE_MAX_OVERFLOW` size the asyncpg pool.
SQLite URLs (`sqlite+aiosqlite://`) skip pool sizing.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from weather_alerts.config import get_settings
from weather_alerts.database.models import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """Create an async engine using the configured pool options."""
    settings = get_settings()
    options: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    options.update(overrides)
    return create_async_engine(database_url, **options)


async def init_db(database_url: str | None = None) -> None:
    """Create the module engine and session factory.

    Args:
        database_url: Overrides `DATABASE_URL` from settings
    """
    global _engine, _session_factory

    if _engine is not None:
        await close_db()

    url = database_url or get_settings().database_url
    logger.info("Opening alert store connection")
    _engine = build_engine(url)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_db() -> None:
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing alert store connection")
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def create_tables() -> None:
    """Create the users and alerts tables if missing.

    Local development and tests only; production schema is managed
    by the application that writes the rules.
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
