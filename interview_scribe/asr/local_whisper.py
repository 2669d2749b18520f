"""
LocalWhisperEngine: Whisper-compatible ASR using faster-whisper.

- Model loaded ONCE at startup (singleton, injected at construction).
- Audio: float32 mono [-1, 1] at SAMPLE_RATE.
- Runs in executor so event loop stays responsive.
"""
from __future__ import annotations

import asyncio
import math
from typing import Any

import numpy as np

from interview_scribe.asr.base import ASREngine, ASRResult
from interview_scribe.config import get_settings

# Type for shared WhisperModel (loaded at startup)
WhisperModelT = Any


def load_whisper_model() -> WhisperModelT:
    """Load faster-whisper model once. Called at startup when ASR_BACKEND=local."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as err:
        raise ImportError(
            "faster-whisper is required for ASR_BACKEND=local. "
            "Install with: pip install 'interview-scribe[local]'"
        ) from err
    settings = get_settings()
    return WhisperModel(
        settings.LOCAL_WHISPER_MODEL,
        device=settings.LOCAL_WHISPER_DEVICE,
        compute_type=settings.LOCAL_WHISPER_COMPUTE_TYPE,
    )


class LocalWhisperEngine(ASREngine):
    """
    Local Whisper via faster-whisper. Uses shared model (singleton).
    transcribe() is async; heavy work runs in executor.
    """

    def __init__(self, model: WhisperModelT | None = None, language: str | None = None) -> None:
        """
        model: shared WhisperModel instance (loaded at app startup).
        If None, the engine reports itself unavailable.
        """
        self._model = model
        self._language = language or get_settings().RECOGNITION_LANGUAGE

    @property
    def available(self) -> bool:
        return self._model is not None

    def _transcribe_sync(self, audio: np.ndarray) -> ASRResult:
        if self._model is None:
            return ASRResult(text="", confidence=0.0)

        settings = get_settings()
        segments, _ = self._model.transcribe(
            audio,
            language=self._language,
            beam_size=settings.LOCAL_WHISPER_BEAM_SIZE,
            vad_filter=True,
            vad_parameters=dict(min_silence_duration_ms=300, speech_pad_ms=100),
            condition_on_previous_text=False,
        )

        parts: list[str] = []
        log_probs: list[float] = []
        for seg in segments:
            t = (seg.text or "").strip()
            if t:
                parts.append(t)
                log_probs.append(getattr(seg, "avg_logprob", 0.0))

        text = " ".join(parts).strip()
        if not text:
            return ASRResult(text="", confidence=0.0)
        # avg_logprob → probability-like score
        confidence = min(1.0, max(0.0, math.exp(sum(log_probs) / len(log_probs))))
        return ASRResult(text=text, confidence=confidence)

    async def transcribe(self, audio: np.ndarray) -> ASRResult:
        """Run _transcribe_sync in executor so event loop is not blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._transcribe_sync, audio)
