"""Logging settings for the stream recognizer.

Values come from the environment; the ``-d`` flag can force debug output.
"""

import os
from dataclasses import dataclass
from typing import Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per JSON log file
DEFAULT_BACKUP_COUNT = 5


@dataclass
class LoggingConfig:
    """Where and how verbosely the service logs.

    Attributes:
        log_level: Level name applied to the root logger
        log_path: Directory for the rotating JSON log; ``None`` keeps stdout only
        log_file_max_bytes: Rotate the JSON log once it reaches this size
        log_file_backup_count: Rotated JSON logs kept on disk
        debug: Force DEBUG regardless of ``log_level``
    """

    log_level: str = "INFO"
    log_path: Optional[str] = None
    log_file_max_bytes: int = DEFAULT_MAX_BYTES
    log_file_backup_count: int = DEFAULT_BACKUP_COUNT
    debug: bool = False

    @classmethod
    def from_env(cls, debug: Optional[bool] = None) -> "LoggingConfig":
        """Read LOG_LEVEL, LOG_PATH, LOG_FILE_MAX_BYTES, LOG_FILE_BACKUP_COUNT and DEBUG.

        Args:
            debug: Takes precedence over DEBUG when not ``None``

        Returns:
            LoggingConfig built from the environment
        """
        if debug is None:
            debug = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes", "on")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_path=os.getenv("LOG_PATH") or None,
            log_file_max_bytes=int(os.getenv("LOG_FILE_MAX_BYTES", str(DEFAULT_MAX_BYTES))),
            log_file_backup_count=int(
                os.getenv("LOG_FILE_BACKUP_COUNT", str(DEFAULT_BACKUP_COUNT))
            ),
            debug=debug,
        )

    @property
    def effective_level(self) -> str:
        """Level actually applied, taking debug mode into account."""
        return "DEBUG" if self.debug else self.log_level

    def validate(self) -> None:
        """Check the settings before any handler is installed.

        Raises:
            ValueError: On an unknown level or unusable rotation settings
        """
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level {self.log_level!r}, expected one of {LOG_LEVELS}")

        if self.log_file_max_bytes < 1024:
            raise ValueError(f"log_file_max_bytes too small: {self.log_file_max_bytes}")

        if self.log_file_backup_count < 1:
            raise ValueError(f"log_file_backup_count must be positive: {self.log_file_backup_count}")
