"""Continuous recognition: event contract and a chunk-transcriber-backed engine."""
from .base import (
    ABORTED,
    NO_SPEECH,
    NOT_ALLOWED,
    HaltKind,
    RecognitionEngine,
    classify_error,
)
from .streaming import StreamingRecognizer

__all__ = [
    "ABORTED",
    "NO_SPEECH",
    "NOT_ALLOWED",
    "HaltKind",
    "RecognitionEngine",
    "StreamingRecognizer",
    "classify_error",
]
