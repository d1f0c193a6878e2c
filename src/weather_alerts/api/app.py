"""FastAPI application factory.

Creates and configures the FastAPI application serving the alert check
endpoint.

## Usage

```python
from weather_alerts.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
```

## Configuration

The app is configured via environment variables. See `weather_alerts.config`
for available settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers

from weather_alerts.config import get_settings
from weather_alerts.database.connection import close_db, get_session_factory, init_db
from weather_alerts.database.store import SqlAlchemyAlertStore
from weather_alerts.rules.engine import BatchRunner

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware that answers every pre-flight with an empty 200.

    The allow-* headers still list only what is permitted, so the browser
    enforces the policy; the pre-flight itself never fails.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        checked = super().preflight_response(request_headers)
        if checked.status_code != 200:
            logger.debug(f"CORS pre-flight not permitted: {checked.body.decode()}")
        headers = {
            key: value
            for key, value in checked.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def create_app(runner: BatchRunner | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        runner: Pre-built batch runner. If omitted, one is built on startup
            from settings with the SQLAlchemy alert store.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the runner on startup and release it on shutdown."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")

        if runner is not None:
            app.state.runner = runner
            yield
            return

        await init_db()
        app.state.runner = BatchRunner.from_settings(
            settings, SqlAlchemyAlertStore(get_session_factory())
        )

        yield

        logger.info("Shutting down")
        await app.state.runner.aclose()
        await close_db()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Checks stored weather alert rules and notifies their owners",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    from weather_alerts.api.routes import alerts

    app.include_router(alerts.router, tags=["Alerts"])

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    return app
