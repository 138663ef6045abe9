"""Pytest fixtures for stream_recognizer tests."""

from pathlib import Path
from typing import Callable, Dict, List, Union
from unittest.mock import AsyncMock

import httpx
import pytest

from stream_recognizer.config import StationTarget
from stream_recognizer.gateway import RecognitionGateway
from stream_recognizer.models import CaptureWindow
from stream_recognizer.result_sink import ResultSink

SHAZAM_RESPONSE = {
    "matches": [{"id": "12345", "offset": 12.3}],
    "timestamp": 1760000000000,
    "tagid": "C0FFEE",
    "track": {
        "key": "40333609",
        "title": "Test Song",
        "subtitle": "Test Artist",
        "url": "https://www.shazam.com/track/40333609",
    },
}


Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeOrigin:
    """Routes requests by URL to canned responses and records what was asked for."""

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.requests: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def shazam_response():
    """Recognizer output for a matched track."""
    return dict(SHAZAM_RESPONSE)


@pytest.fixture
def stream_file(tmp_path) -> Path:
    """Scratch file location inside the test directory."""
    return tmp_path / "stream.out"


@pytest.fixture
def make_target(stream_file):
    """Factory for station targets with short timings."""

    def _make(station: str = "http://radio.example.com/live", **overrides) -> StationTarget:
        values = {
            "station": station,
            "interval": 0.05,
            "stream_file": stream_file,
            "watchdog_grace": 0.2,
            "request_timeout": 1.0,
        }
        values.update(overrides)
        return StationTarget(**values)

    return _make


@pytest.fixture
def fake_gateway(shazam_response):
    """Recognition gateway returning a fixed match."""
    gateway = AsyncMock(spec=RecognitionGateway)
    gateway.generate_signature.return_value = object()
    gateway.recognize.return_value = shazam_response
    return gateway


@pytest.fixture
def fake_windower(stream_file):
    """Windower returning a small capture without touching the network."""
    windower = AsyncMock()
    windower.capture.return_value = CaptureWindow(
        data=b"audio", duration=0.05, elapsed=0.05, path=stream_file
    )
    return windower


@pytest.fixture
def fake_sink():
    """Result sink that records publishes."""
    sink = AsyncMock(spec=ResultSink)
    sink.publish.return_value = True
    return sink


@pytest.fixture
def fake_origin():
    """Factory for fake HTTP origins: ``fake_origin({url: response})``."""
    return FakeOrigin
