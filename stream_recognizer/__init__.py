"""Stream Recognizer Service for internet radio stations.

This module watches one radio station, captures a short window of audio on a
fixed cadence, identifies the playing track and forwards the result to an
optional HTTP endpoint. Every cycle is raced against a watchdog so a stalled
stream can never wedge the service.

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import StationTarget
from .models import ContinuousPlan, CycleOutcome, OutcomeKind, RecognitionResult, SegmentedPlan
from .supervisor import Supervisor

__all__ = [
    "StationTarget",
    "Supervisor",
    "SegmentedPlan",
    "ContinuousPlan",
    "CycleOutcome",
    "OutcomeKind",
    "RecognitionResult",
]
