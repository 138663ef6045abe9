"""Prometheus metrics and supervisor health for the stream recognizer."""

from .health_checks import HealthChecker, HealthStatus
from .metrics import MetricsExporter

__all__ = [
    "MetricsExporter",
    "HealthChecker",
    "HealthStatus",
]
