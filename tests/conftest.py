"""
Pytest configuration and shared fixtures for all tests
"""

import pytest

STATION_ENV_VARS = (
    "STATION_URL",
    "RECOGNITION_INTERVAL",
    "CALLBACK_ENDPOINT",
    "STREAM_FILE",
    "DEBUG",
    "WATCHDOG_GRACE_SECONDS",
    "REQUEST_TIMEOUT",
    "CALLBACK_TIMEOUT",
    "STATUS_PORT",
    "LOG_LEVEL",
    "LOG_PATH",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove recognizer settings inherited from the caller's environment."""
    for name in STATION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def callback_url():
    return "http://callback.example.com/tracks"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
