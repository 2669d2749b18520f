"""
TranscriptionService: decode → transcribe (driver) → diarize, with recording
status transitions reported to a StatusReporter.

uploaded → processing → completed | error, starting when the bytes arrive.
The service only emits statuses; storing recordings or transcripts is the
reporter's business.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from interview_scribe.audio.decoder import AudioDecoder, PydubAudioDecoder
from interview_scribe.config import Settings, get_settings
from interview_scribe.diarization import diarize
from interview_scribe.driver import RecognitionPlaybackDriver
from interview_scribe.models import RecordingStatus, Transcript
from interview_scribe.transcript.collector import ProgressCallback, SegmentCallback

logger = logging.getLogger(__name__)


class StatusReporter(ABC):
    @abstractmethod
    def report(self, recording_id: str, status: RecordingStatus, detail: Optional[str] = None) -> None:
        """Receive one status transition for a recording."""


class LogStatusReporter(StatusReporter):
    """Reports status transitions via logging."""

    def report(self, recording_id: str, status: RecordingStatus, detail: Optional[str] = None) -> None:
        msg = f"[{recording_id}] {status.value}"
        if detail:
            msg += f": {detail}"
        logger.info(msg)


class TranscriptionService:
    def __init__(
        self,
        driver: RecognitionPlaybackDriver,
        decoder: AudioDecoder | None = None,
        reporter: StatusReporter | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._driver = driver
        self._decoder = decoder or PydubAudioDecoder(sample_rate=self._settings.SAMPLE_RATE)
        self._reporter = reporter or LogStatusReporter()

    async def process(
        self,
        recording_id: str,
        audio_bytes: bytes,
        on_progress: Optional[ProgressCallback] = None,
        on_segment: Optional[SegmentCallback] = None,
    ) -> Transcript:
        """Transcribe and diarize one received recording. Errors are reported as status 'error' and re-raised."""
        settings = self._settings
        self._reporter.report(recording_id, RecordingStatus.UPLOADED, f"{len(audio_bytes)} bytes")
        self._reporter.report(recording_id, RecordingStatus.PROCESSING)
        try:
            audio = await self._decoder.decode(audio_bytes)
            segments = await self._driver.transcribe(audio, on_progress=on_progress, on_segment=on_segment)
            if settings.DIARIZATION_ENABLED:
                segments = diarize(
                    audio.channel(0),
                    audio.sample_rate,
                    segments,
                    iterations=settings.CLUSTER_ITERATIONS,
                    max_island_words=settings.SMOOTHING_MAX_WORDS,
                    pitch_window=settings.PITCH_WINDOW_SAMPLES,
                    pitch_min_lag=settings.PITCH_MIN_LAG,
                )
        except Exception as e:
            logger.exception("Processing failed for %s: %s", recording_id, e)
            self._reporter.report(recording_id, RecordingStatus.ERROR, str(e))
            raise
        self._reporter.report(recording_id, RecordingStatus.COMPLETED, f"{len(segments)} segments")
        return Transcript(recording_id=recording_id, duration=audio.duration, segments=segments)

    def stop(self) -> None:
        self._driver.stop()
