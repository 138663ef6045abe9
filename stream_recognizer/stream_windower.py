"""Audio capture for one recognition window.

Segmented plans fetch a whole HLS segment; continuous plans sample a live
stream until the configured interval has elapsed.
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional

import httpx

from .config import USER_AGENT
from .errors import TransportFailure
from .models import CaptureWindow, ContinuousPlan, PlaybackPlan, SegmentedPlan

logger = logging.getLogger(__name__)


class StreamWindower:
    """Captures bounded audio windows into the scratch file."""

    def __init__(
        self,
        stream_file: Path,
        request_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the windower.

        Args:
            stream_file: Scratch file overwritten with every window.
            request_timeout: Connect/read timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self.stream_file = Path(stream_file)
        self.request_timeout = request_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # A fresh client per capture: a connection abandoned by a cancelled
        # cycle is never pooled into the next one.
        return httpx.AsyncClient(
            timeout=self.request_timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    async def capture(self, plan: PlaybackPlan) -> CaptureWindow:
        """Capture one window for the plan and write it to the scratch file.

        Args:
            plan: Resolved playback plan.

        Returns:
            CaptureWindow: Captured bytes and timing.

        Raises:
            TransportFailure: Request, read or scratch write failed.
        """
        if isinstance(plan, SegmentedPlan):
            return await self._capture_segment(plan)
        if isinstance(plan, ContinuousPlan):
            return await self._capture_stream(plan)
        raise TypeError(f"Unsupported plan type: {type(plan).__name__}")

    async def _capture_segment(self, plan: SegmentedPlan) -> CaptureWindow:
        logger.info(f"Reading bytes from segment {plan.leaf_uri}")
        started = time.monotonic()
        try:
            async with self._client() as client:
                response = await client.get(plan.leaf_uri)
                response.raise_for_status()
                data = response.content
        except httpx.HTTPStatusError as e:
            raise TransportFailure(
                f"Segment request failed: HTTP {e.response.status_code} for {plan.leaf_uri}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Segment request failed for {plan.leaf_uri}: {e}") from e

        if not data:
            raise TransportFailure(f"Segment is empty: {plan.leaf_uri}")

        elapsed = time.monotonic() - started
        self._write(data)
        return CaptureWindow(
            data=data, duration=plan.segment_duration, elapsed=elapsed, path=self.stream_file
        )

    async def _capture_stream(self, plan: ContinuousPlan) -> CaptureWindow:
        logger.info(f"Reading bytes from stream {plan.stream_uri}")
        buffer = bytearray()
        first_byte_at: Optional[float] = None
        elapsed = 0.0

        try:
            async with self._client() as client:
                async with client.stream("GET", plan.stream_uri) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes():
                        if not chunk:
                            continue
                        if first_byte_at is None:
                            first_byte_at = time.monotonic()
                        buffer.extend(chunk)
                        elapsed = time.monotonic() - first_byte_at
                        if elapsed >= plan.interval:
                            break
                    else:
                        raise TransportFailure(
                            f"Stream ended after {elapsed:.2f}s of {plan.interval:.2f}s "
                            f"({len(buffer)} bytes): {plan.stream_uri}"
                        )
                    # Leaving the block closes the response without draining it.
        except httpx.HTTPStatusError as e:
            raise TransportFailure(
                f"Stream request failed: HTTP {e.response.status_code} for {plan.stream_uri}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"Stream read failed for {plan.stream_uri}: {e}") from e

        data = bytes(buffer)
        self._write(data)
        return CaptureWindow(
            data=data, duration=plan.interval, elapsed=elapsed, path=self.stream_file
        )

    def _write(self, data: bytes) -> None:
        """Replace the scratch file in one step so readers never see a partial window."""
        logger.info(f"Saving {len(data)} bytes to {self.stream_file}")
        tmp_path = self.stream_file.with_name(self.stream_file.name + ".part")
        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self.stream_file)
        except OSError as e:
            raise TransportFailure(f"Failed to write {self.stream_file}: {e}") from e
