"""Recognition gateway: fingerprint captured audio and look up the track.

The recognizer itself is an external capability. ``RecognitionGateway`` is the
boundary the supervisor depends on; ``ShazamGateway`` adapts ``shazamio``.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from shazamio import Shazam

from .errors import FingerprintError, RecognitionError

logger = logging.getLogger(__name__)

TrackMetadata = Dict[str, Any]


class RecognitionGateway(ABC):
    """Two-step recognition capability."""

    @abstractmethod
    async def generate_signature(self, path: Path) -> Any:
        """Create a signature from an audio file.

        Raises:
            FingerprintError: If the file cannot be fingerprinted.
        """

    @abstractmethod
    async def recognize(self, signature: Any) -> TrackMetadata:
        """Match a signature against the recognition service.

        Raises:
            RecognitionError: If no track matches or the lookup fails.
        """


class ShazamGateway(RecognitionGateway):
    """Recognition through the Shazam API via ``shazamio``."""

    def __init__(self, shazam: Optional[Shazam] = None, language: str = "en-US"):
        self.shazam = shazam or Shazam(language=language)

    async def generate_signature(self, path: Path) -> Any:
        logger.info("Creating a signature")
        try:
            return await self.shazam.core_recognizer.recognize_path(str(path))
        except Exception as e:
            raise FingerprintError(f"Failed to fingerprint {path}: {e}") from e

    async def recognize(self, signature: Any) -> TrackMetadata:
        logger.info("Attempting to recognize song")
        try:
            response = await self.shazam.send_recognize_request_v2(sig=signature)
        except Exception as e:
            raise RecognitionError(f"Recognition request failed: {e}") from e

        if not isinstance(response, dict) or not response.get("track"):
            raise RecognitionError("No match for captured audio")

        logger.info("Song is recognized successfully")
        return response
