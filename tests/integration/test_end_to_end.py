"""End-to-end tests: station address to callback payload."""

import json
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from stream_recognizer.__main__ import main
from stream_recognizer.config import StationTarget
from stream_recognizer.gateway import RecognitionGateway
from stream_recognizer.models import OutcomeKind
from stream_recognizer.playlist_resolver import PlaylistResolver
from stream_recognizer.result_sink import ResultSink
from stream_recognizer.stream_windower import StreamWindower
from stream_recognizer.supervisor import Supervisor

pytestmark = pytest.mark.integration

MASTER = """#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=128000,CODECS="mp4a.40.2"
http://x/media.m3u8
"""


def media(sequence: int) -> str:
    return (
        "#EXTM3U\n#EXT-X-TARGETDURATION:6\n"
        f"#EXT-X-MEDIA-SEQUENCE:{sequence}\n"
        f"#EXTINF:6.0,\nseg{sequence}.ts\n"
    )


class Origin:
    """HLS origin whose media playlist advances one segment per request."""

    def __init__(self):
        self.requests = []
        self.sequence = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url == "http://x/master.m3u8":
            return httpx.Response(200, text=MASTER)
        if url == "http://x/media.m3u8":
            body = media(self.sequence)
            self.sequence += 1
            return httpx.Response(200, text=body)
        if url.startswith("http://x/seg"):
            return httpx.Response(200, content=url.encode() * 10)
        return httpx.Response(404)


@pytest.fixture
def gateway():
    gateway = AsyncMock(spec=RecognitionGateway)
    gateway.generate_signature.return_value = "signature"
    gateway.recognize.return_value = {
        "tagid": "C0FFEE",
        "track": {"title": "Test Song", "subtitle": "Test Artist"},
    }
    return gateway


@pytest.mark.asyncio
async def test_hls_station_to_callback(tmp_path, gateway, callback_url):
    """Test master -> media -> segment -> recognition -> callback over two iterations."""
    origin = Origin()
    transport = httpx.MockTransport(origin)
    stream_file = tmp_path / "stream.out"
    target = StationTarget(
        station="http://x/master.m3u8",
        interval=5.0,
        stream_file=stream_file,
        endpoint=callback_url,
        watchdog_grace=1.0,
    )
    supervisor = Supervisor(
        target,
        resolver=PlaylistResolver(target.interval, transport=transport),
        windower=StreamWindower(stream_file, transport=transport),
        gateway=gateway,
        sink=ResultSink(target.endpoint),
    )

    with patch("aiohttp.ClientSession.post") as mock_post, patch.object(
        Supervisor, "_pace", new_callable=AsyncMock
    ) as mock_pace:
        mock_response = MagicMock()
        mock_response.status = 200
        mock_post.return_value.__aenter__.return_value = mock_response

        await supervisor.run(max_iterations=2)

    assert supervisor.stats["success"] == 2
    assert origin.requests == [
        "http://x/master.m3u8",
        "http://x/media.m3u8",
        "http://x/seg0.ts",
        "http://x/master.m3u8",
        "http://x/media.m3u8",
        "http://x/seg1.ts",
    ]
    assert stream_file.read_bytes() == b"http://x/seg1.ts" * 10
    gateway.generate_signature.assert_awaited_with(stream_file)
    mock_pace.assert_awaited_with(6.0)
    assert supervisor.current_budget == 13.0

    assert mock_post.call_count == 2
    payload = mock_post.call_args.kwargs["json"]
    assert payload["station"] == "http://x/master.m3u8"
    assert payload["track"]["title"] == "Test Song"
    assert payload["tagid"] == "C0FFEE"
    assert datetime.fromisoformat(payload["time"]).utcoffset().total_seconds() == 0
    json.dumps(payload)


@pytest.mark.asyncio
async def test_unreachable_station_keeps_looping(tmp_path, gateway):
    """Test a failing origin produces failures, never an exit."""

    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    transport = httpx.MockTransport(refuse)
    target = StationTarget(
        station="http://x/master.m3u8", stream_file=tmp_path / "s.out", watchdog_grace=1.0
    )
    supervisor = Supervisor(
        target,
        resolver=PlaylistResolver(target.interval, transport=transport),
        windower=StreamWindower(target.stream_file, transport=transport),
        gateway=gateway,
        sink=ResultSink(),
    )

    await supervisor.run(max_iterations=3)

    assert supervisor.iterations == 3
    assert supervisor.stats[OutcomeKind.TRANSPORT_FAILURE.value] == 3
    gateway.generate_signature.assert_not_awaited()


def test_main_rejects_invalid_configuration(clean_env, capsys):
    """Test invalid configuration exits with status 2 before any iteration."""
    with patch.object(Supervisor, "run", new_callable=AsyncMock) as mock_run:
        status = main(["-s", "http://radio.example.com/live", "-i", "0"])

    assert status == 2
    assert "Interval must be positive" in capsys.readouterr().err
    mock_run.assert_not_called()


def test_main_missing_station(clean_env, capsys):
    assert main([]) == 2
    assert "STATION_URL" in capsys.readouterr().err


def test_main_runs_supervisor(clean_env, tmp_path):
    """Test a valid configuration starts the loop."""
    with patch.object(Supervisor, "run", new_callable=AsyncMock) as mock_run, patch(
        "stream_recognizer.__main__.setup_logging"
    ), patch("stream_recognizer.__main__.MetricsExporter"), patch(
        "stream_recognizer.supervisor.ShazamGateway"
    ):
        status = main(
            ["-s", "http://radio.example.com/live", "-o", str(tmp_path / "stream.out")]
        )

    assert status == 0
    mock_run.assert_awaited_once()
