"""
StreamingRecognizer: continuous recognition over a chunk transcriber.

Follows the attached playback clock: every STREAM_STEP_SECONDS it looks at
the audio played since its last mark and, once STREAM_MIN_CHUNK_SECONDS have
accumulated, gates the window through VAD and transcribes it. Each non-empty
transcription is delivered as one final result.

Session behaviour mirrors a browser recognizer:
- no speech for STREAM_NO_SPEECH_TIMEOUT_SECONDS → error "no-speech", then end
- STREAM_MAX_SESSION_SECONDS reached or playback exhausted → end
- stop() → the pending window is transcribed, then end
- transcriber HTTP failure → "network"; any other failure → "audio-capture"
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import httpx
import numpy as np

from interview_scribe.asr.base import ASREngine
from interview_scribe.audio.vad import VADProcessor
from interview_scribe.config import Settings, get_settings
from interview_scribe.errors import RecognitionStartError
from interview_scribe.models import RecognitionAlternative
from interview_scribe.recognition.base import AUDIO_CAPTURE, NETWORK, NO_SPEECH, RecognitionEngine

if TYPE_CHECKING:
    from interview_scribe.audio.playback import Playback

logger = logging.getLogger(__name__)


class StreamingRecognizer(RecognitionEngine):
    def __init__(
        self,
        asr: ASREngine,
        vad: VADProcessor | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__()
        settings = settings or get_settings()
        self._asr = asr
        self._vad = vad
        self._step_sec = settings.STREAM_STEP_SECONDS
        self._min_chunk_sec = settings.STREAM_MIN_CHUNK_SECONDS
        self._no_speech_timeout = settings.STREAM_NO_SPEECH_TIMEOUT_SECONDS
        self._max_session_sec = settings.STREAM_MAX_SESSION_SECONDS
        self._min_speech_ratio = settings.VAD_MIN_SPEECH_RATIO
        self._silence_rms = settings.SILENCE_RMS
        self._playback: Optional["Playback"] = None
        self._task: Optional[asyncio.Task] = None
        self._stop_requested: Optional[asyncio.Event] = None

    @property
    def available(self) -> bool:
        return self._asr.available

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self, playback: "Playback") -> None:
        self._playback = playback

    def start(self) -> None:
        if self._playback is None:
            raise RecognitionStartError("No audio source attached")
        if self.running:
            raise RecognitionStartError("Recognition has already started")
        self._stop_requested = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self.running and self._stop_requested is not None:
            self._stop_requested.set()

    def _has_speech(self, window: np.ndarray) -> bool:
        if window.size == 0:
            return False
        if self._vad is not None:
            return self._vad.speech_ratio(window) >= self._min_speech_ratio
        rms = float(np.sqrt(np.mean(np.square(window, dtype=np.float64))))
        return rms >= self._silence_rms

    async def _wait_step(self) -> bool:
        """Sleep one step. True when stop() was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=self._step_sec)
            return True
        except asyncio.TimeoutError:
            return False

    async def _transcribe_window(self, start: float, end: float) -> bool:
        """Transcribe played audio [start, end). True when a final result was emitted."""
        window = self._playback.audio.window(start, end)
        if not self._has_speech(window):
            return False
        result = await self._asr.transcribe(window)
        text = (result.text or "").strip()
        if not text:
            return False
        self._emit_result([RecognitionAlternative(is_final=True, transcript=text, confidence=result.confidence)])
        return True

    async def _run(self) -> None:
        playback = self._playback
        started = mark = last_speech = playback.current_time
        self._emit_start()
        try:
            while True:
                stopping = await self._wait_step()
                now = playback.current_time
                exhausted = playback.ended or now >= playback.duration
                if (stopping or exhausted or now - mark >= self._min_chunk_sec) and now > mark:
                    if await self._transcribe_window(mark, now):
                        last_speech = now
                    mark = now
                if stopping or exhausted:
                    break
                if now - last_speech >= self._no_speech_timeout:
                    logger.debug("No speech for %.1fs at %.2fs", now - last_speech, now)
                    self._emit_error(NO_SPEECH)
                    break
                if now - started >= self._max_session_sec:
                    logger.debug("Recognition session reached %.0fs; ending", self._max_session_sec)
                    break
        except httpx.HTTPError as e:
            logger.warning("Transcriber request failed: %s", e)
            self._emit_error(NETWORK)
        except Exception as e:
            logger.exception("Transcriber failed: %s", e)
            self._emit_error(AUDIO_CAPTURE)
        finally:
            self._task = None
            self._emit_end()
