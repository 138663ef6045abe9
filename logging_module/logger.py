"""Logger setup for the stream recognizer service.

Configures console logging for all modules and, when a log directory is set,
a rotating JSON log file for shipping to a log collector.
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler

from logging_module.config import LoggingConfig

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "stream_recognizer.log"

# Chatty third-party loggers that drown the cycle log at DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
}


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """Configure the root logger.

    Example:
        >>> config = LoggingConfig.from_env(debug=True)
        >>> setup_logging(config)
        >>> logging.getLogger("stream_recognizer").debug("visible")

    Args:
        config: Validated logging configuration

    Returns:
        The configured root logger
    """
    config.validate()
    level = getattr(logging, config.effective_level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console_handler)

    # Rotating file handler (JSON format)
    if config.log_path:
        try:
            os.makedirs(config.log_path, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(config.log_path, LOG_FILE_NAME),
                maxBytes=config.log_file_max_bytes,
                backupCount=config.log_file_backup_count,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JsonFormatter())
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"Failed to set up file logging in {config.log_path}: {e}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Formats log records as JSON with timestamp, level, message, and extra fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)
