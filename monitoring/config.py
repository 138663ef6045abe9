"""Configuration for monitoring module."""

import os
from dataclasses import dataclass


@dataclass
class MonitoringConfig:
    """Configuration for metrics and health checks."""

    # Metrics
    metrics_path: str = "/metrics"

    # Health checks
    stale_after: float = 600.0  # seconds without a successful recognition
    stall_factor: float = 2.0  # watchdog budgets without any finished iteration
    station_check_timeout: float = 5.0  # seconds

    @classmethod
    def from_env(cls) -> "MonitoringConfig":
        """Create configuration from environment variables.

        Returns:
            MonitoringConfig instance
        """
        return cls(
            metrics_path=os.getenv("METRICS_PATH", "/metrics"),
            stale_after=float(os.getenv("HEALTH_STALE_AFTER", "600.0")),
            stall_factor=float(os.getenv("HEALTH_STALL_FACTOR", "2.0")),
            station_check_timeout=float(os.getenv("STATION_CHECK_TIMEOUT", "5.0")),
        )

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.metrics_path.startswith("/"):
            raise ValueError(f"Invalid metrics_path: {self.metrics_path}")

        if self.stale_after <= 0:
            raise ValueError(f"Invalid stale_after: {self.stale_after}")

        if self.stall_factor < 1:
            raise ValueError(f"Invalid stall_factor: {self.stall_factor}")

        if self.station_check_timeout <= 0:
            raise ValueError(f"Invalid station_check_timeout: {self.station_check_timeout}")


def get_config() -> MonitoringConfig:
    """Get monitoring configuration from environment.

    Returns:
        MonitoringConfig instance
    """
    config = MonitoringConfig.from_env()
    config.validate()
    return config
