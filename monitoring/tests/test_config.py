"""Tests for monitoring configuration."""

import pytest

from monitoring.config import MonitoringConfig, get_config


class TestMonitoringConfig:
    """Test cases for MonitoringConfig."""

    def test_defaults(self):
        config = MonitoringConfig()

        assert config.metrics_path == "/metrics"
        assert config.stale_after == 600.0
        assert config.stall_factor == 2.0
        assert config.station_check_timeout == 5.0

    def test_from_env(self, monkeypatch):
        """Test loading configuration from environment."""
        monkeypatch.setenv("HEALTH_STALE_AFTER", "120")
        monkeypatch.setenv("HEALTH_STALL_FACTOR", "3")
        monkeypatch.setenv("STATION_CHECK_TIMEOUT", "2.5")

        config = MonitoringConfig.from_env()

        assert config.stale_after == 120.0
        assert config.stall_factor == 3.0
        assert config.station_check_timeout == 2.5

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"metrics_path": "metrics"}, "metrics_path"),
            ({"stale_after": 0}, "stale_after"),
            ({"stall_factor": 0.5}, "stall_factor"),
            ({"station_check_timeout": -1}, "station_check_timeout"),
        ],
    )
    def test_validate_invalid(self, overrides, message):
        """Test validation rejects invalid values."""
        with pytest.raises(ValueError, match=message):
            MonitoringConfig(**overrides).validate()

    def test_get_config(self, monkeypatch):
        monkeypatch.delenv("HEALTH_STALE_AFTER", raising=False)
        assert get_config().stale_after == 600.0
