"""
Schemas for the transcription API (HTTP response and WebSocket messages).

Segments are ordered by playback time and contiguous:
segments[i].end_time == segments[i + 1].start_time.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from interview_scribe.models import Segment


class SegmentOut(BaseModel):
    """One transcript segment with its speaker role."""

    text: str = Field(..., description="Finalized recognition text")
    start_time: float = Field(..., ge=0.0, description="Start in seconds of playback time")
    end_time: float = Field(..., ge=0.0, description="End in seconds of playback time")
    speaker_label: str = Field("unassigned", description="unassigned | interviewer | interviewee")
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Engine confidence 0–1")

    @classmethod
    def from_segment(cls, segment: Segment) -> "SegmentOut":
        return cls(
            text=segment.text,
            start_time=segment.start_time,
            end_time=segment.end_time,
            speaker_label=segment.speaker_label.value,
            confidence=segment.confidence,
        )


class TranscriptResponse(BaseModel):
    """Response body for POST /api/transcribe."""

    recording_id: str
    status: str = Field(..., description="completed | error")
    duration: float | None = Field(None, description="Decoded audio length in seconds")
    segments: list[SegmentOut] = Field(default_factory=list)


class ProgressMessage(BaseModel):
    type: str = "progress"
    progress: float = Field(..., ge=0.0, le=100.0)


class SegmentMessage(BaseModel):
    type: str = "segment"
    segment: SegmentOut


class CompletedMessage(BaseModel):
    type: str = "completed"
    recording_id: str
    duration: float = Field(..., ge=0.0, description="Decoded audio length in seconds")
    segments: list[SegmentOut]


class ErrorMessage(BaseModel):
    type: str = "error"
    error: str = Field(..., description="Exception class name, e.g. PermissionDeniedError")
    detail: str = ""
