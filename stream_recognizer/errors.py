"""Exception hierarchy for the stream recognizer."""

import asyncio


class StreamRecognizerError(Exception):
    """Base class for all recognizer errors."""


class PlaylistError(StreamRecognizerError):
    """A station address could not be turned into a playback plan."""


class PlaylistParseError(PlaylistError):
    """Manifest body is malformed or the manifest chain is invalid."""


class PlaylistEmpty(PlaylistError):
    """Manifest or redirect list has no usable entries."""


class NotAPlaylist(PlaylistError):
    """Address looked like a playlist but the body is something else."""


class TransportFailure(StreamRecognizerError):
    """Connect, read or write failure while talking to the station."""


class FingerprintError(StreamRecognizerError):
    """Signature could not be generated from the captured audio."""


class RecognitionError(StreamRecognizerError):
    """Signature could not be matched to a track."""


class PublishError(StreamRecognizerError):
    """Result could not be delivered to the callback endpoint."""


class WatchdogTimeout(asyncio.TimeoutError):
    """Work cycle did not finish within its timeout budget."""

    def __init__(self, budget: float):
        super().__init__(f"work cycle exceeded {budget:.1f}s budget")
        self.budget = budget
