"""Alert check routes.

The check endpoint is triggered externally (a scheduler or a manual call)
and takes no payload. Per-rule failures never change the response: the
caller gets 200 unless the alert store itself could not be read.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from weather_alerts.exceptions import LoadError
from weather_alerts.rules.engine import BatchRunner

logger = logging.getLogger(__name__)

router = APIRouter()


class CheckResponse(BaseModel):
    """Alert check summary."""

    message: str
    processed: int
    conditions_met: int
    sent: int
    failed: int


class ErrorResponse(BaseModel):
    """Alert check failure."""

    error: str


def get_runner(request: Request) -> BatchRunner:
    """Get the batch runner created in the app lifespan."""
    return request.app.state.runner


@router.api_route(
    "/check-weather-alerts",
    methods=["GET", "POST"],
    response_model=CheckResponse,
    responses={500: {"model": ErrorResponse}},
)
async def check_weather_alerts(request: Request):
    """Run one alert check over every stored rule."""
    runner = get_runner(request)
    try:
        result = await runner.run_batch()
    except LoadError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e)},
        )
    return CheckResponse(**result.summary())


@router.options("/check-weather-alerts", include_in_schema=False)
async def check_weather_alerts_preflight() -> Response:
    """Answer CORS pre-flight requests with an empty success."""
    return Response(status_code=status.HTTP_200_OK)
