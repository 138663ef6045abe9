"""Command-line entry point: ``python -m stream_recognizer``."""

import asyncio
import logging
import sys
from typing import List, Optional

from logging_module import LoggingConfig, setup_logging
from monitoring.metrics import MetricsExporter

from .config import StationTarget
from .supervisor import Supervisor

logger = logging.getLogger("stream_recognizer")


def main(argv: Optional[List[str]] = None) -> int:
    """Validate configuration once, then run until terminated.

    Returns:
        Process exit status; 2 for invalid configuration.
    """
    try:
        target = StationTarget.from_args(argv)
        target.validate()
        logging_config = LoggingConfig.from_env(debug=True if target.debug else None)
        setup_logging(logging_config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logger.info("Starting...")
    metrics = MetricsExporter()
    supervisor = Supervisor.from_target(target, metrics=metrics)

    if target.status_port:
        import uvicorn

        from .app import create_app

        uvicorn.run(
            create_app(supervisor, metrics),
            host="0.0.0.0",
            port=target.status_port,
            log_level=logging_config.effective_level.lower(),
        )
        return 0

    try:
        asyncio.run(supervisor.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
