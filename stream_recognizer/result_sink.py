"""Result sink: annotate recognitions and deliver them to the callback endpoint."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional

import aiohttp

from .errors import PublishError
from .gateway import TrackMetadata
from .models import RecognitionResult

logger = logging.getLogger(__name__)


def annotate(
    metadata: TrackMetadata, station: str, timestamp: Optional[datetime] = None
) -> RecognitionResult:
    """Attach station and capture time to recognizer output.

    Args:
        metadata: Track metadata returned by the recognizer.
        station: Original station address.
        timestamp: Capture time; naive values are taken as UTC. Defaults to now.

    Returns:
        RecognitionResult: Immutable annotated result.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    timestamp = timestamp.astimezone(timezone.utc)

    fields = {k: v for k, v in metadata.items() if k not in ("station", "time")}
    return RecognitionResult(station=station, time=timestamp.isoformat(), **fields)


class ResultSink:
    """Best-effort delivery of recognition results."""

    def __init__(
        self, endpoint: Optional[str] = None, timeout_seconds: float = 30.0, debug: bool = False
    ):
        """Initialize the sink.

        Args:
            endpoint: Callback URL; ``None`` disables delivery.
            timeout_seconds: Total timeout for one POST.
            debug: Log the full JSON payload of every result.
        """
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self.debug = debug

    async def publish(self, result: RecognitionResult, endpoint: Optional[str] = None) -> bool:
        """Send one result to the endpoint.

        Never raises; failures are logged and reported through the return value.

        Args:
            result: Annotated recognition result.
            endpoint: Override for the configured endpoint.

        Returns:
            True if the endpoint answered with a 2xx status, False otherwise.
        """
        payload = result.to_payload()
        if self.debug:
            logger.debug(json.dumps(payload, indent=2, ensure_ascii=False))

        endpoint = endpoint or self.endpoint
        if not endpoint:
            return False

        logger.info("Sending a request to the endpoint")
        try:
            status = await self._post(endpoint, payload)
        except PublishError as e:
            logger.error(f"Endpoint error: {e}")
            return False

        logger.info(f"Endpoint response: {status}")
        return 200 <= status < 300

    async def _post(self, endpoint: str, payload: dict) -> int:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    endpoint,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    return response.status
        except asyncio.TimeoutError as e:
            raise PublishError(f"request to {endpoint} timed out") from e
        except aiohttp.ClientError as e:
            raise PublishError(f"request to {endpoint} failed: {e}") from e
