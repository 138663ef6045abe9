"""Prometheus metrics exporter for stream recognition monitoring."""

import logging
import time
from typing import Dict, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)

OUTCOME_LABELS = (
    "success",
    "resolution_failure",
    "transport_failure",
    "recognition_failure",
    "timed_out",
)


class MetricsExporter:
    """Prometheus metrics exporter for the recognition supervisor.

    Provides counters, gauges, and histograms for tracking cycle outcomes,
    watchdog activity, and callback delivery.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize Prometheus metrics.

        Args:
            registry: Registry to register with; defaults to the global registry.
        """
        self.registry = registry if registry is not None else REGISTRY

        # Counters
        self.cycles_total = Counter(
            "recognizer_cycles_total",
            "Total number of supervisor iterations",
            ["outcome"],
            registry=self.registry,
        )

        self.watchdog_fired_total = Counter(
            "recognizer_watchdog_fired_total",
            "Total number of work cycles aborted by the watchdog",
            registry=self.registry,
        )

        self.publish_total = Counter(
            "recognizer_publish_total",
            "Total number of callback deliveries",
            ["result"],  # delivered, failed
            registry=self.registry,
        )

        # Gauges
        self.last_success_timestamp = Gauge(
            "recognizer_last_success_timestamp_seconds",
            "Unix time of the last successful recognition",
            registry=self.registry,
        )

        self.capture_bytes = Gauge(
            "recognizer_capture_bytes",
            "Size of the last captured audio window in bytes",
            registry=self.registry,
        )

        # Histograms
        self.cycle_duration_seconds = Histogram(
            "recognizer_cycle_duration_seconds",
            "Supervisor iteration duration in seconds",
            buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0, 80.0, 160.0),
            registry=self.registry,
        )

        for outcome in OUTCOME_LABELS:
            self.cycles_total.labels(outcome=outcome)
        for result in ("delivered", "failed"):
            self.publish_total.labels(result=result)

        logger.info("Prometheus metrics initialized")

    def record_outcome(self, outcome: str, duration_seconds: float) -> None:
        """Record a finished supervisor iteration.

        Args:
            outcome: Outcome kind value, e.g. ``"success"``
            duration_seconds: Iteration wall-clock duration
        """
        self.cycles_total.labels(outcome=outcome).inc()
        self.cycle_duration_seconds.observe(duration_seconds)

        if outcome == "success":
            self.last_success_timestamp.set(time.time())
        elif outcome == "timed_out":
            self.watchdog_fired_total.inc()

        logger.debug(f"Cycle outcome recorded: {outcome} ({duration_seconds:.3f}s)")

    def record_publish(self, delivered: bool) -> None:
        """Record a callback delivery attempt."""
        self.publish_total.labels(result="delivered" if delivered else "failed").inc()

    def update_capture_size(self, size_bytes: int) -> None:
        """Update the captured window size gauge."""
        self.capture_bytes.set(size_bytes)

    def get_metrics(self) -> bytes:
        """Generate Prometheus metrics output.

        Returns:
            Prometheus metrics in text format
        """
        return generate_latest(self.registry)

    def get_metrics_summary(self) -> Dict:
        """Get current metrics summary as dictionary.

        Returns:
            Dictionary with current metric values
        """
        return {
            "cycles": {
                outcome: self.cycles_total.labels(outcome=outcome)._value.get()
                for outcome in OUTCOME_LABELS
            },
            "watchdog_fired": self.watchdog_fired_total._value.get(),
            "publish": {
                "delivered": self.publish_total.labels(result="delivered")._value.get(),
                "failed": self.publish_total.labels(result="failed")._value.get(),
            },
            "last_success_timestamp": self.last_success_timestamp._value.get(),
            "capture_bytes": self.capture_bytes._value.get(),
        }
