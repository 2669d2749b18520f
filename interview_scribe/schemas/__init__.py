"""Pydantic schemas for API request/response."""
from interview_scribe.schemas.transcript import (
    CompletedMessage,
    ErrorMessage,
    ProgressMessage,
    SegmentMessage,
    SegmentOut,
    TranscriptResponse,
)

__all__ = [
    "CompletedMessage",
    "ErrorMessage",
    "ProgressMessage",
    "SegmentMessage",
    "SegmentOut",
    "TranscriptResponse",
]
