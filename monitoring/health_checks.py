"""Health checks for the recognition supervisor."""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

import aiohttp

from monitoring.config import MonitoringConfig

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status levels."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    status: HealthStatus
    message: str
    timestamp: datetime
    details: Optional[Dict] = None


class HealthChecker:
    """Performs health checks on the recognizer.

    Checks:
    - Supervisor progress (iterations keep finishing)
    - Recognition freshness (last success is recent)
    - Station reachability
    """

    def __init__(self, config: Optional[MonitoringConfig] = None):
        """Initialize health checker.

        Args:
            config: Monitoring configuration
        """
        if config is None:
            from monitoring.config import get_config

            config = get_config()

        self.config = config

        logger.info("Health checker initialized")

    async def check_liveness(self) -> HealthCheckResult:
        """Liveness probe - is the service alive?

        Returns:
            HealthCheckResult with liveness status
        """
        return HealthCheckResult(
            status=HealthStatus.HEALTHY,
            message="Service is alive",
            timestamp=datetime.now(timezone.utc),
            details={"check": "liveness"},
        )

    def check_supervisor(self, supervisor, now: Optional[float] = None) -> HealthCheckResult:
        """Check that the supervisor loop is making progress.

        The loop is unhealthy when no iteration has finished within
        ``stall_factor`` watchdog budgets, which the watchdog should make
        impossible. It is degraded while iterations finish but none succeed.

        Args:
            supervisor: Running ``Supervisor``
            now: Monotonic time, defaults to ``time.monotonic()``

        Returns:
            HealthCheckResult with supervisor status
        """
        now = time.monotonic() if now is None else now
        details = {
            "iterations": supervisor.iterations,
            "outcomes": dict(supervisor.stats),
            "budget_seconds": supervisor.current_budget,
        }

        if supervisor.started_at is None:
            return HealthCheckResult(
                status=HealthStatus.DEGRADED,
                message="Supervisor not started",
                timestamp=datetime.now(timezone.utc),
                details=details,
            )

        last_progress = supervisor.last_completed_at or supervisor.started_at
        since_progress = now - last_progress
        details["seconds_since_progress"] = round(since_progress, 3)

        if since_progress > self.config.stall_factor * supervisor.current_budget:
            return HealthCheckResult(
                status=HealthStatus.UNHEALTHY,
                message=f"No iteration finished for {since_progress:.0f}s",
                timestamp=datetime.now(timezone.utc),
                details=details,
            )

        if supervisor.last_success_at is None:
            return HealthCheckResult(
                status=HealthStatus.DEGRADED,
                message="No successful recognition yet",
                timestamp=datetime.now(timezone.utc),
                details=details,
            )

        since_success = now - supervisor.last_success_at
        details["seconds_since_success"] = round(since_success, 3)
        if since_success > self.config.stale_after:
            return HealthCheckResult(
                status=HealthStatus.DEGRADED,
                message=f"Last successful recognition {since_success:.0f}s ago",
                timestamp=datetime.now(timezone.utc),
                details=details,
            )

        return HealthCheckResult(
            status=HealthStatus.HEALTHY,
            message="Recognizing",
            timestamp=datetime.now(timezone.utc),
            details=details,
        )

    async def check_station(self, url: str) -> HealthCheckResult:
        """Check that the station address answers.

        Only response headers are read; the body of a live stream is never consumed.

        Args:
            url: Station address

        Returns:
            HealthCheckResult with station status
        """
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.config.station_check_timeout),
                ) as response:
                    if response.status < 400:
                        return HealthCheckResult(
                            status=HealthStatus.HEALTHY,
                            message="Station is reachable",
                            timestamp=datetime.now(timezone.utc),
                            details={"reachable": True, "status_code": response.status},
                        )
                    return HealthCheckResult(
                        status=HealthStatus.DEGRADED,
                        message=f"Station returned status {response.status}",
                        timestamp=datetime.now(timezone.utc),
                        details={"reachable": True, "status_code": response.status},
                    )

        except asyncio.TimeoutError:
            return HealthCheckResult(
                status=HealthStatus.UNHEALTHY,
                message="Station connection timeout",
                timestamp=datetime.now(timezone.utc),
                details={"reachable": False, "error": "timeout"},
            )
        except aiohttp.ClientError as e:
            logger.warning(f"Station health check failed: {e}")
            return HealthCheckResult(
                status=HealthStatus.UNHEALTHY,
                message=f"Station unreachable: {str(e)}",
                timestamp=datetime.now(timezone.utc),
                details={"reachable": False, "error": str(e)},
            )

    def get_health_dict(self, result: HealthCheckResult) -> Dict:
        """Convert health check result to dictionary for API response.

        Args:
            result: Health check result

        Returns:
            Dictionary representation
        """
        return {
            "status": result.status.value,
            "message": result.message,
            "timestamp": result.timestamp.isoformat(),
            "details": result.details or {},
        }
