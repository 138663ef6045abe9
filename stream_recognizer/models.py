"""Value types passed between the recognizer stages."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class SegmentedPlan:
    """A single HLS segment to fetch in full."""

    leaf_uri: str
    segment_duration: float

    @property
    def uri(self) -> str:
        return self.leaf_uri

    @property
    def duration(self) -> float:
        return self.segment_duration

    @property
    def segmented(self) -> bool:
        return True


@dataclass(frozen=True)
class ContinuousPlan:
    """A continuous stream to sample for ``interval`` seconds."""

    stream_uri: str
    interval: float

    @property
    def uri(self) -> str:
        return self.stream_uri

    @property
    def duration(self) -> float:
        return self.interval

    @property
    def segmented(self) -> bool:
        return False


PlaybackPlan = Union[SegmentedPlan, ContinuousPlan]


@dataclass(frozen=True)
class CaptureWindow:
    """Audio bytes captured for one recognition attempt."""

    data: bytes
    duration: float
    elapsed: float
    path: Path

    @property
    def size(self) -> int:
        return len(self.data)


class RecognitionResult(BaseModel):
    """Recognized track plus station and capture time.

    Track fields returned by the recognizer are kept as extra attributes so the
    callback receives them unchanged.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    station: str = Field(..., description="Original station address")
    time: str = Field(..., description="Capture time, RFC 3339")

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body sent to the callback endpoint."""
        return self.model_dump(mode="json")

    @property
    def track(self) -> Dict[str, Any]:
        """Track section of the recognizer response, if any."""
        extra = self.model_extra or {}
        track = extra.get("track")
        return track if isinstance(track, dict) else {}

    def describe(self) -> str:
        """Short ``artist - title`` label for log lines."""
        track = self.track
        subtitle = track.get("subtitle") or "unknown artist"
        title = track.get("title") or "unknown title"
        return f"{subtitle} - {title}"


class OutcomeKind(str, Enum):
    """How a supervisor iteration ended."""

    SUCCESS = "success"
    RESOLUTION_FAILURE = "resolution_failure"
    TRANSPORT_FAILURE = "transport_failure"
    RECOGNITION_FAILURE = "recognition_failure"
    TIMED_OUT = "timed_out"


@dataclass
class CycleOutcome:
    """Result of one supervisor iteration."""

    kind: OutcomeKind
    result: Optional[RecognitionResult] = None
    cause: Optional[BaseException] = None
    elapsed: float = 0.0
    finished_at: Optional[datetime] = None

    @classmethod
    def success(cls, result: RecognitionResult) -> "CycleOutcome":
        return cls(kind=OutcomeKind.SUCCESS, result=result)

    @classmethod
    def failure(cls, kind: OutcomeKind, cause: BaseException) -> "CycleOutcome":
        return cls(kind=kind, cause=cause)

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the status endpoint."""
        return {
            "kind": self.kind.value,
            "cause": str(self.cause) if self.cause else None,
            "elapsed_seconds": round(self.elapsed, 3),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "track": self.result.describe() if self.result else None,
        }
