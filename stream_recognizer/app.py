"""FastAPI status application for the stream recognizer.

Runs the supervisor as a background task and exposes health, status and
Prometheus metrics endpoints.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Response, status
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel

from monitoring.config import MonitoringConfig
from monitoring.health_checks import HealthChecker, HealthCheckResult, HealthStatus
from monitoring.metrics import MetricsExporter

from .config import SERVICE_NAME, SERVICE_VERSION
from .supervisor import Supervisor

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    timestamp: str
    message: str
    details: dict


class StatusResponse(BaseModel):
    """Status endpoint response."""

    service: str
    station: str
    timestamp: str
    iterations: int
    outcomes: dict
    budget_seconds: float
    last_outcome: Optional[dict]
    last_result: Optional[dict]
    metrics: Optional[dict]


def create_app(
    supervisor: Supervisor,
    metrics: Optional[MetricsExporter] = None,
    health_checker: Optional[HealthChecker] = None,
    run_supervisor: bool = True,
    monitoring_config: Optional[MonitoringConfig] = None,
) -> FastAPI:
    """Build the status application.

    Args:
        supervisor: Supervisor to report on (and run).
        metrics: Metrics exporter backing ``/metrics``.
        health_checker: Health checker; built from environment if omitted.
        run_supervisor: Start ``supervisor.run()`` for the app's lifetime.
        monitoring_config: Health thresholds and metrics path for a default checker.

    Returns:
        FastAPI: Configured application.
    """
    checker = health_checker or HealthChecker(monitoring_config)
    metrics_path = checker.config.metrics_path

    def health_response(result: HealthCheckResult) -> HealthResponse:
        return HealthResponse(service=SERVICE_NAME, **checker.get_health_dict(result))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown."""
        background_task = None
        if run_supervisor:
            logger.info("Starting recognition supervisor...")
            background_task = asyncio.create_task(supervisor.run(), name="supervisor")

        try:
            yield
        finally:
            logger.info("Shutting down stream recognizer...")
            if background_task:
                background_task.cancel()
                try:
                    await background_task
                except asyncio.CancelledError:
                    pass
            logger.info("Service shut down complete")

    app = FastAPI(
        title="Stream Recognizer Service",
        description="Identifies the track playing on a radio station",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root():
        """Service information."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "station": supervisor.target.station,
            "endpoints": {
                "health": "/health",
                "liveness": "/health/live",
                "station": "/health/station",
                "status": "/status",
                "metrics": metrics_path,
            },
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check(response: Response):
        """Supervisor health; answers 503 when the loop has stalled."""
        result = checker.check_supervisor(supervisor)
        if result.status == HealthStatus.UNHEALTHY:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return health_response(result)

    @app.get("/health/live", response_model=HealthResponse)
    async def liveness():
        """Liveness probe."""
        return health_response(await checker.check_liveness())

    @app.get("/health/station", response_model=HealthResponse)
    async def station_health(response: Response):
        """Reachability of the configured station; answers 503 when unreachable."""
        result = await checker.check_station(supervisor.target.station)
        if result.status == HealthStatus.UNHEALTHY:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return health_response(result)

    @app.get("/status", response_model=StatusResponse)
    async def get_status():
        """Detailed supervisor status."""
        last_outcome = supervisor.last_outcome
        last_result = supervisor.last_result

        return StatusResponse(
            service=SERVICE_NAME,
            station=supervisor.target.station,
            timestamp=datetime.now(timezone.utc).isoformat(),
            iterations=supervisor.iterations,
            outcomes=dict(supervisor.stats),
            budget_seconds=supervisor.current_budget,
            last_outcome=last_outcome.to_dict() if last_outcome else None,
            last_result=last_result.to_payload() if last_result else None,
            metrics=metrics.get_metrics_summary() if metrics else None,
        )

    @app.get(metrics_path)
    async def get_metrics():
        """Prometheus metrics."""
        if metrics is None:
            return PlainTextResponse("", status_code=status.HTTP_404_NOT_FOUND)
        return PlainTextResponse(metrics.get_metrics(), media_type=CONTENT_TYPE_LATEST)

    return app
