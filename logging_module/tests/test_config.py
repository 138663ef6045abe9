"""Unit tests for logging_module.config."""

import pytest

from logging_module.config import LoggingConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_PATH", "LOG_FILE_MAX_BYTES", "LOG_FILE_BACKUP_COUNT", "DEBUG"):
        monkeypatch.delenv(name, raising=False)


class TestLoggingConfig:
    """Tests for LoggingConfig class."""

    def test_default_values(self):
        """Test default configuration values."""
        config = LoggingConfig.from_env()

        assert config.log_level == "INFO"
        assert config.log_path is None
        assert config.log_file_max_bytes == 10 * 1024 * 1024
        assert config.log_file_backup_count == 5
        assert config.debug is False
        assert config.effective_level == "INFO"

    def test_from_env(self, monkeypatch, tmp_path):
        """Test loading configuration from environment."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_PATH", str(tmp_path))
        monkeypatch.setenv("LOG_FILE_MAX_BYTES", "2048")
        monkeypatch.setenv("LOG_FILE_BACKUP_COUNT", "3")

        config = LoggingConfig.from_env()

        assert config.log_level == "WARNING"
        assert config.log_path == str(tmp_path)
        assert config.log_file_max_bytes == 2048
        assert config.log_file_backup_count == 3

    def test_debug_env_forces_debug_level(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")

        config = LoggingConfig.from_env()

        assert config.debug is True
        assert config.effective_level == "DEBUG"

    def test_debug_argument_overrides_env(self, monkeypatch):
        """Test the -d flag wins over the DEBUG variable."""
        monkeypatch.setenv("DEBUG", "false")

        assert LoggingConfig.from_env(debug=True).debug is True

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"log_level": "VERBOSE"}, "Invalid log_level"),
            ({"log_file_max_bytes": 100}, "log_file_max_bytes"),
            ({"log_file_backup_count": 0}, "log_file_backup_count"),
        ],
    )
    def test_validate_invalid(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            LoggingConfig(**overrides).validate()
