"""
AudioDecoder: raw bytes → DecodedAudio (float32 channels in [-1, 1], sample rate, duration).

- PydubAudioDecoder reads anything pydub/ffmpeg can read; WAV is read without ffmpeg.
- Output is resampled to SAMPLE_RATE so VAD and the transcriber see one contract.
- Decoding is blocking; it runs in the default executor.
"""
from __future__ import annotations

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from interview_scribe.config import get_settings
from interview_scribe.errors import PlaybackFaultError
from interview_scribe.models import DecodedAudio

logger = logging.getLogger(__name__)


def _sniff_format(data: bytes) -> Optional[str]:
    """Container hint from magic bytes; None lets ffmpeg probe."""
    if data[:4] == b"RIFF" and data[8:12] == b"WAVE":
        return "wav"
    if data[:4] == b"OggS":
        return "ogg"
    if data[:4] == b"fLaC":
        return "flac"
    if data[:3] == b"ID3" or data[:2] in (b"\xff\xfb", b"\xff\xf3", b"\xff\xf2"):
        return "mp3"
    return None


class AudioDecoder(ABC):
    """Decode collaborator. decode() raises PlaybackFaultError on unreadable input."""

    @abstractmethod
    async def decode(self, data: bytes) -> DecodedAudio:
        ...


class PydubAudioDecoder(AudioDecoder):
    def __init__(self, sample_rate: int | None = None, audio_format: str | None = None) -> None:
        self._sample_rate = sample_rate or get_settings().SAMPLE_RATE
        self._format = audio_format

    def _decode_sync(self, data: bytes) -> DecodedAudio:
        from pydub import AudioSegment
        from pydub.exceptions import CouldntDecodeError

        if not data:
            raise PlaybackFaultError("Audio is empty")
        fmt = self._format or _sniff_format(data)
        try:
            segment = AudioSegment.from_file(io.BytesIO(data), format=fmt)
        except (CouldntDecodeError, OSError, ValueError, IndexError) as err:
            raise PlaybackFaultError(f"Could not decode audio: {err}") from err

        if segment.frame_rate != self._sample_rate:
            segment = segment.set_frame_rate(self._sample_rate)
        scale = float(1 << (8 * segment.sample_width - 1))
        channels = np.stack(
            [np.array(ch.get_array_of_samples(), dtype=np.float32) / scale for ch in segment.split_to_mono()]
        )
        audio = DecodedAudio(channels=channels, sample_rate=self._sample_rate)
        logger.info(
            "Decoded audio: format=%s channels=%d rate=%d duration=%.2fs",
            fmt or "probe",
            channels.shape[0],
            self._sample_rate,
            audio.duration,
        )
        return audio

    async def decode(self, data: bytes) -> DecodedAudio:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._decode_sync, data)
