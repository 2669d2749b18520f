"""
VADProcessor: Voice Activity Detection over decoded float samples.

Uses webrtcvad (aggressiveness 0–3) on 20ms PCM frames. The streaming
recognizer uses the speech ratio of a window to decide whether to transcribe
it or count it towards a no-speech timeout.
"""
from __future__ import annotations

import numpy as np
import webrtcvad

from interview_scribe.config import get_settings


def float32_to_pcm_bytes(audio: np.ndarray) -> bytes:
    """Convert float32 [-1, 1] to PCM 16-bit mono bytes."""
    samples = (np.asarray(audio, dtype=np.float32) * 32767).clip(-32768, 32767).astype(np.int16)
    return samples.tobytes()


class VADProcessor:
    """
    Wraps webrtcvad. Frames must be exactly 10, 20, or 30 ms of 8/16/32/48 kHz mono PCM.
    """

    def __init__(self, aggressiveness: int = 2, sample_rate: int | None = None, frame_ms: int | None = None) -> None:
        """
        aggressiveness: 0 (least aggressive) to 3 (most aggressive).
        Higher = more frames classified as silence.
        """
        settings = get_settings()
        self._vad = webrtcvad.Vad(aggressiveness)
        self._sample_rate = sample_rate or settings.SAMPLE_RATE
        self._frame_ms = frame_ms or settings.FRAME_MS
        self._frame_samples = self._sample_rate * self._frame_ms // 1000
        self._frame_bytes = self._frame_samples * 2

    def is_speech(self, frame: bytes) -> bool:
        """True if one PCM frame contains speech. Wrong-sized frames count as silence."""
        if len(frame) != self._frame_bytes:
            return False
        return self._vad.is_speech(frame, self._sample_rate)

    def speech_ratio(self, samples: np.ndarray) -> float:
        """Fraction of whole frames in samples classified as speech (0.0 when shorter than a frame)."""
        pcm = float32_to_pcm_bytes(samples)
        n_frames = len(pcm) // self._frame_bytes
        if n_frames == 0:
            return 0.0
        voiced = sum(
            1
            for i in range(n_frames)
            if self.is_speech(pcm[i * self._frame_bytes : (i + 1) * self._frame_bytes])
        )
        return voiced / n_frames

    @property
    def frame_ms(self) -> int:
        return self._frame_ms

    @property
    def frame_bytes(self) -> int:
        return self._frame_bytes
