"""Configuration for the stream recognizer service.

Loads configuration from command-line arguments and environment variables with
validation and defaults.
"""

import argparse
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

DEFAULT_INTERVAL = 5.0
DEFAULT_STREAM_FILE = "stream.out"
DEFAULT_WATCHDOG_GRACE = 60.0
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_CALLBACK_TIMEOUT = 30.0

SERVICE_NAME = "stream-recognizer"
SERVICE_VERSION = "1.0.0"
USER_AGENT = f"{SERVICE_NAME}/{SERVICE_VERSION}"


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class StationTarget:
    """Static configuration for one station instance."""

    # Station
    station: str
    interval: float = DEFAULT_INTERVAL
    stream_file: Path = Path(DEFAULT_STREAM_FILE)

    # Downstream callback
    endpoint: Optional[str] = None
    callback_timeout: float = DEFAULT_CALLBACK_TIMEOUT

    # Supervisor
    watchdog_grace: float = DEFAULT_WATCHDOG_GRACE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Service
    debug: bool = False
    status_port: Optional[int] = None

    @classmethod
    def from_env(cls, station: Optional[str] = None) -> "StationTarget":
        """Load configuration from environment variables.

        Args:
            station: Station address taking precedence over STATION_URL.

        Returns:
            StationTarget: Configuration with values from environment.

        Raises:
            ValueError: If required environment variables are missing or malformed.
        """
        station = station or os.getenv("STATION_URL")
        if not station:
            raise ValueError("Missing required environment variables: STATION_URL")

        status_port = os.getenv("STATUS_PORT")

        try:
            return cls(
                station=station,
                interval=float(os.getenv("RECOGNITION_INTERVAL", str(DEFAULT_INTERVAL))),
                stream_file=Path(os.getenv("STREAM_FILE", DEFAULT_STREAM_FILE)),
                endpoint=os.getenv("CALLBACK_ENDPOINT") or None,
                callback_timeout=float(
                    os.getenv("CALLBACK_TIMEOUT", str(DEFAULT_CALLBACK_TIMEOUT))
                ),
                watchdog_grace=float(
                    os.getenv("WATCHDOG_GRACE_SECONDS", str(DEFAULT_WATCHDOG_GRACE))
                ),
                request_timeout=float(
                    os.getenv("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
                ),
                debug=os.getenv("DEBUG", "false").lower() in ("true", "1", "yes", "on"),
                status_port=int(status_port) if status_port else None,
            )
        except ValueError as e:
            raise ValueError(f"Invalid numeric configuration value: {e}") from e

    @classmethod
    def from_args(cls, argv: Optional[List[str]] = None) -> "StationTarget":
        """Build configuration from command-line flags, falling back to environment.

        Args:
            argv: Argument list, defaults to ``sys.argv[1:]``.

        Returns:
            StationTarget: Merged configuration.
        """
        parser = build_parser()
        args = parser.parse_args(argv)

        base = cls.from_env(station=args.station)

        overrides = {}
        if args.interval is not None:
            overrides["interval"] = args.interval
        if args.endpoint is not None:
            overrides["endpoint"] = args.endpoint
        if args.stream_file is not None:
            overrides["stream_file"] = Path(args.stream_file)
        if args.debug:
            overrides["debug"] = True
        if args.status_port is not None:
            overrides["status_port"] = args.status_port

        return replace(base, **overrides)

    @property
    def timeout_budget(self) -> float:
        """Watchdog budget for the configured interval."""
        return self.budget_for(self.interval)

    def budget_for(self, duration: float) -> float:
        """Watchdog budget for a plan of ``duration`` seconds."""
        return 2 * duration + self.watchdog_grace

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration values are invalid.
        """
        if not _is_http_url(self.station):
            raise ValueError(f"Invalid station URL: {self.station}")

        if self.interval <= 0:
            raise ValueError(f"Interval must be positive, got {self.interval}")

        if self.endpoint is not None and not _is_http_url(self.endpoint):
            raise ValueError(f"Invalid callback endpoint: {self.endpoint}")

        if self.watchdog_grace < 0:
            raise ValueError(f"Watchdog grace must be >= 0, got {self.watchdog_grace}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")

        if self.callback_timeout <= 0:
            raise ValueError(
                f"Callback timeout must be positive, got {self.callback_timeout}"
            )

        if self.status_port is not None and not (1 <= self.status_port <= 65535):
            raise ValueError(f"Invalid status_port: {self.status_port}")

        parent = self.stream_file.expanduser().resolve().parent
        if not parent.is_dir():
            raise ValueError(f"Stream file directory does not exist: {parent}")


def build_parser() -> argparse.ArgumentParser:
    """Command-line parser mirroring the environment settings."""
    parser = argparse.ArgumentParser(
        prog="stream-recognizer",
        description="Recognize the currently playing track in a radio station.",
    )
    parser.add_argument("-s", "--station", help="radio station URL")
    parser.add_argument(
        "-i", "--interval", type=float, help="interval seconds between recognitions"
    )
    parser.add_argument("-e", "--endpoint", help="endpoint to send the results")
    parser.add_argument("-o", "--stream-file", help="temporary file for the stream")
    parser.add_argument("-d", "--debug", action="store_true", help="enable debug messages")
    parser.add_argument("--status-port", type=int, help="serve the status API on this port")
    return parser
