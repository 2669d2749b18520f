"""
Domain types shared by the driver, collector and diarization pass.

Segments are created incrementally while recognition runs. Speaker labels are
applied once, in the diarization post-pass, which returns new Segment
instances; after that a transcript is treated as immutable.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np


class SpeakerLabel(str, Enum):
    UNASSIGNED = "unassigned"
    INTERVIEWER = "interviewer"
    INTERVIEWEE = "interviewee"


class RecordingStatus(str, Enum):
    """Status transitions emitted to the downstream collaborator: uploaded → processing → completed | error."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class Segment:
    """
    One finalized recognition result.

    start_time, end_time: seconds of playback time. Within one transcript
    segment[i].end_time == segment[i + 1].start_time.
    confidence: 0.0–1.0 as reported by the engine.
    """

    text: str
    start_time: float
    end_time: float
    speaker_label: SpeakerLabel = SpeakerLabel.UNASSIGNED
    confidence: float = 0.0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class Transcript:
    """Outcome of one processed recording. duration is the decoded audio length, not the last segment end."""

    recording_id: str
    duration: float
    segments: list[Segment]


@dataclass(frozen=True)
class FeatureVector:
    """Per-segment acoustic features. pitch is None when no autocorrelation lag was found."""

    energy: float
    pitch: Optional[float]
    zcr: float


@dataclass(frozen=True)
class ClusterPartition:
    """Two disjoint index sets covering 0..n-1."""

    a: tuple[int, ...]
    b: tuple[int, ...] = ()


@dataclass(frozen=True)
class RecognitionAlternative:
    """One entry of an engine result event."""

    is_final: bool
    transcript: str
    confidence: Optional[float] = None


@dataclass
class DecodedAudio:
    """
    Decoded sample buffer, shared by playback, recognition and diarization.

    channels: float32 array shaped (n_channels, n_samples), values in [-1, 1].
    """

    channels: np.ndarray
    sample_rate: int
    duration: float = field(default=0.0)

    def __post_init__(self) -> None:
        if self.channels.ndim == 1:
            self.channels = self.channels.reshape(1, -1)
        if not self.duration and self.sample_rate:
            self.duration = self.channels.shape[1] / float(self.sample_rate)

    def channel(self, index: int = 0) -> np.ndarray:
        return self.channels[index]

    def window(self, start_sec: float, end_sec: float, channel: int = 0) -> np.ndarray:
        """Samples of one channel between two playback times."""
        start = max(0, int(np.floor(start_sec * self.sample_rate)))
        end = max(start, int(np.floor(end_sec * self.sample_rate)))
        return self.channels[channel, start:end]
