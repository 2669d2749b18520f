"""
ASREngine: abstract chunk transcriber (Whisper-compatible).

Implementations: LocalWhisperEngine (faster-whisper), CloudflareWhisperEngine.
All run heavy work in executor to avoid blocking the event loop. The
StreamingRecognizer turns a chunk transcriber into a continuous recognizer.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np


@dataclass
class ASRResult:
    """Result of one ASR transcribe call."""

    text: str
    confidence: float  # 0.0–1.0 estimate


class ASREngine(ABC):
    """
    Abstract ASR engine. Accepts float32 mono audio (normalized [-1, 1]).
    transcribe() is async; implementations may run sync work in executor.
    """

    @abstractmethod
    async def transcribe(self, audio: "np.ndarray") -> ASRResult:
        """Transcribe one chunk of audio. Must not block event loop."""
        ...

    @property
    def available(self) -> bool:
        """False when the engine cannot run (model not loaded, credentials missing)."""
        return True
