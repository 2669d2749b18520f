"""
Error taxonomy for transcription.

Fatal errors reject a transcribe() call exactly once. Transient recognizer
halts (no-speech, aborted) are recovered inside the driver and never raised.
Diarization never raises.
"""
from __future__ import annotations


class TranscriptionError(Exception):
    """Base for all transcription failures."""


class UnsupportedCapabilityError(TranscriptionError):
    """No recognition engine available. Raised before any playback starts."""


class PermissionDeniedError(TranscriptionError):
    """Engine or microphone access refused."""


class PlaybackFaultError(TranscriptionError):
    """Audio could not be decoded or played."""


class RecognitionFaultError(TranscriptionError):
    """Any recognizer error code that is neither transient nor a permission denial."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        super().__init__(message or f"Recognition error: {code}")


class RecognitionStartError(TranscriptionError):
    """Engine start() called while a recognition session is already running."""
