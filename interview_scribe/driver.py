"""
RecognitionPlaybackDriver: plays decoded audio while a continuous recognizer
listens, restarting the recognizer after its transient halts, and collects
finalized results into contiguous segments.

State machine (one DriverSession per transcribe() call):

    IDLE → STARTING → LISTENING → RESTARTING → STARTING ...
                                 ↘ STOPPED (resolved or rejected)

- Restart backoff is fixed: INITIAL_START_DELAY_SEC before the first start,
  TRANSIENT_RESTART_DELAY_SEC after no-speech/aborted, NORMAL_END_RESTART_DELAY_SEC
  after a clean end. No retry cap; remaining playback time is the only bound.
- Starts are serialized by the session's recognizer_active flag.
- Every exit path cancels pending timers and releases playback exactly once,
  and the call resolves or rejects exactly once.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from functools import partial
from typing import Callable, Optional, Union

from interview_scribe.audio.decoder import AudioDecoder, PydubAudioDecoder
from interview_scribe.audio.playback import ClockPlayback, Playback
from interview_scribe.config import Settings, get_settings
from interview_scribe.errors import (
    PermissionDeniedError,
    PlaybackFaultError,
    RecognitionFaultError,
    TranscriptionError,
    UnsupportedCapabilityError,
)
from interview_scribe.models import DecodedAudio, RecognitionAlternative, Segment
from interview_scribe.recognition.base import HaltKind, RecognitionEngine, classify_error
from interview_scribe.transcript.collector import ProgressCallback, SegmentCallback, SegmentCollector

logger = logging.getLogger(__name__)

AudioSource = Union[bytes, DecodedAudio]
PlaybackFactory = Callable[[DecodedAudio], Playback]


class DriverState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    RESTARTING = "restarting"
    STOPPED = "stopped"


class ScheduledTask:
    """Cancellable delayed callback. Fires at most once."""

    def __init__(self, loop: asyncio.AbstractEventLoop, delay: float, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._fired = False
        self._cancelled = False
        self._handle = loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._fired = True
        self._callback()

    def cancel(self) -> None:
        if self.pending:
            self._cancelled = True
            self._handle.cancel()

    @property
    def pending(self) -> bool:
        return not (self._fired or self._cancelled)


class DriverSession:
    """Transient state of one transcribe() call. Only the driver transitions it."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        audio: DecodedAudio,
        playback: Playback,
        collector: SegmentCollector,
    ) -> None:
        self.loop = loop
        self.audio = audio
        self.playback = playback
        self.collector = collector
        self.state = DriverState.IDLE
        self.should_continue = True
        self.recognizer_active = False
        self.stop_requested = False
        self.start_count = 0
        self.pending_restart: Optional[ScheduledTask] = None
        self.pending_stop: Optional[ScheduledTask] = None
        self.future: asyncio.Future = loop.create_future()
        self._playback_released = False

    @property
    def finished(self) -> bool:
        return self.state is DriverState.STOPPED

    @property
    def restart_pending(self) -> bool:
        return self.pending_restart is not None and self.pending_restart.pending

    def transition(self, state: DriverState) -> None:
        if state is not self.state:
            logger.debug("Driver %s → %s at %.2fs", self.state.value, state.value, self.playback.current_time)
        self.state = state

    def has_time_remaining(self, margin: float) -> bool:
        return self.playback.current_time < self.audio.duration - margin

    def schedule_restart(self, delay: float, callback: Callable[[], None]) -> None:
        if self.pending_restart is not None:
            self.pending_restart.cancel()
        self.pending_restart = ScheduledTask(self.loop, delay, callback)

    def schedule_stop(self, delay: float, callback: Callable[[], None]) -> None:
        if self.pending_stop is not None:
            self.pending_stop.cancel()
        self.pending_stop = ScheduledTask(self.loop, delay, callback)

    def cancel_timers(self) -> None:
        for task in (self.pending_restart, self.pending_stop):
            if task is not None:
                task.cancel()
        self.pending_restart = None
        self.pending_stop = None

    def release_playback(self) -> None:
        if self._playback_released:
            return
        self._playback_released = True
        self.playback.pause()
        self.playback.release()

    def close(self) -> None:
        """Terminal cleanup shared by every exit path."""
        self.should_continue = False
        self.cancel_timers()
        self.release_playback()
        self.transition(DriverState.STOPPED)


class RecognitionPlaybackDriver:
    """
    transcribe(audio_source, on_progress, on_segment) → list[Segment].

    Raises UnsupportedCapabilityError, PermissionDeniedError, PlaybackFaultError
    or RecognitionFaultError. One transcription at a time per driver.
    """

    def __init__(
        self,
        engine: RecognitionEngine | None,
        decoder: AudioDecoder | None = None,
        playback_factory: PlaybackFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._engine = engine
        self._settings = settings or get_settings()
        self._decoder = decoder or PydubAudioDecoder(sample_rate=self._settings.SAMPLE_RATE)
        self._playback_factory = playback_factory or self._default_playback
        self._session: Optional[DriverSession] = None
        self._busy = False

    def _default_playback(self, audio: DecodedAudio) -> Playback:
        return ClockPlayback(audio, volume=self._settings.PLAYBACK_VOLUME, rate=self._settings.PLAYBACK_RATE)

    @property
    def state(self) -> DriverState:
        return self._session.state if self._session else DriverState.IDLE

    @property
    def session(self) -> Optional[DriverSession]:
        return self._session

    async def transcribe(
        self,
        audio_source: AudioSource,
        on_progress: Optional[ProgressCallback] = None,
        on_segment: Optional[SegmentCallback] = None,
    ) -> list[Segment]:
        engine = self._engine
        if engine is None or not engine.available:
            raise UnsupportedCapabilityError("Speech recognition is not available")
        if self._busy:
            raise TranscriptionError("A transcription is already running on this driver")
        self._busy = True
        try:
            if isinstance(audio_source, DecodedAudio):
                audio = audio_source
            else:
                audio = await self._decoder.decode(audio_source)
            return await self._run_session(engine, audio, on_progress, on_segment)
        finally:
            self._busy = False

    async def _run_session(
        self,
        engine: RecognitionEngine,
        audio: DecodedAudio,
        on_progress: Optional[ProgressCallback],
        on_segment: Optional[SegmentCallback],
    ) -> list[Segment]:
        loop = asyncio.get_running_loop()
        playback = self._playback_factory(audio)
        playback.volume = self._settings.PLAYBACK_VOLUME
        collector = SegmentCollector(audio.duration, on_segment=on_segment, on_progress=on_progress)
        session = DriverSession(loop, audio, playback, collector)
        self._session = session
        self._bind(engine, session)
        logger.info("Transcription started: duration=%.2fs", audio.duration)
        try:
            try:
                await playback.play()
            except Exception as e:
                logger.error("Could not start playback: %s", e)
                fault = PlaybackFaultError("Could not start playback")
                fault.__cause__ = e
                self._fail(session, fault)
            else:
                session.transition(DriverState.STARTING)
                session.schedule_restart(
                    self._settings.INITIAL_START_DELAY_SEC,
                    partial(self._start_recognition, session),
                )
            return await session.future
        finally:
            if not session.finished:
                # Caller cancelled: tear down without resolving
                self._stop_engine(session)
                session.close()
            self._unbind(engine, playback)
            self._session = None

    def stop(self) -> None:
        """
        Cooperative cancellation. Idempotent.

        Does not resolve the pending transcribe() itself: the recognizer's end
        event (or, with no recognizer running, a queued end) resolves it with
        the segments collected so far.
        """
        session = self._session
        if session is None or session.finished or session.stop_requested:
            return
        logger.info("Transcription stop requested at %.2fs", session.playback.current_time)
        session.stop_requested = True
        session.should_continue = False
        session.cancel_timers()
        self._stop_engine(session)
        if not session.recognizer_active:
            # No end event will arrive; finish through the end path
            session.loop.call_soon(self._handle_end, session)
        session.release_playback()

    # --- wiring ---

    def _bind(self, engine: RecognitionEngine, session: DriverSession) -> None:
        engine.on_start = partial(self._handle_start, session)
        engine.on_result = partial(self._handle_result, session)
        engine.on_error = partial(self._handle_error, session)
        engine.on_end = partial(self._handle_end, session)
        engine.attach(session.playback)
        session.playback.on_ended = partial(self._handle_playback_ended, session)
        session.playback.on_error = partial(self._handle_playback_error, session)

    def _unbind(self, engine: RecognitionEngine, playback: Playback) -> None:
        engine.on_start = None
        engine.on_result = None
        engine.on_error = None
        engine.on_end = None
        playback.on_ended = None
        playback.on_error = None

    def _start_recognition(self, session: DriverSession) -> None:
        if session.finished or not session.should_continue or session.recognizer_active:
            return
        session.recognizer_active = True
        session.start_count += 1
        session.transition(DriverState.STARTING)
        try:
            self._engine.start()
        except Exception as e:
            logger.warning("Recognition start failed: %s", e)
            session.recognizer_active = False

    def _stop_engine(self, session: DriverSession) -> None:
        if not session.recognizer_active:
            return
        try:
            self._engine.stop()
        except Exception as e:
            logger.warning("Recognition stop failed: %s", e)
            session.recognizer_active = False

    # --- recognizer events ---

    def _handle_start(self, session: DriverSession) -> None:
        if session.finished:
            return
        session.recognizer_active = True
        session.transition(DriverState.LISTENING)

    def _handle_result(self, session: DriverSession, results: list[RecognitionAlternative]) -> None:
        if session.finished:
            return
        current_time = session.playback.current_time
        for alt in results:
            if not alt.is_final:
                continue
            confidence = alt.confidence or self._settings.DEFAULT_CONFIDENCE
            session.collector.add(alt.transcript, confidence, current_time)

    def _handle_error(self, session: DriverSession, code: str) -> None:
        if session.finished:
            return
        session.recognizer_active = False
        kind = classify_error(code)
        if kind is HaltKind.TRANSIENT:
            if session.should_continue and session.has_time_remaining(self._settings.END_MARGIN_SEC):
                delay = self._settings.TRANSIENT_RESTART_DELAY_SEC
                logger.info(
                    "Recognizer halted (%s) at %.2fs; restarting in %.2fs",
                    code,
                    session.playback.current_time,
                    delay,
                )
                session.transition(DriverState.RESTARTING)
                session.schedule_restart(delay, partial(self._start_recognition, session))
            else:
                self._complete(session)
        elif kind is HaltKind.PERMISSION:
            logger.error("Recognition permission denied (%s)", code)
            self._fail(session, PermissionDeniedError("Microphone or recognition access was denied"))
        else:
            logger.error("Recognition error: %s", code)
            self._fail(session, RecognitionFaultError(code))

    def _handle_end(self, session: DriverSession) -> None:
        if session.finished:
            return
        session.recognizer_active = False
        if session.restart_pending:
            return
        if session.should_continue and session.has_time_remaining(self._settings.END_MARGIN_SEC):
            session.transition(DriverState.RESTARTING)
            session.schedule_restart(
                self._settings.NORMAL_END_RESTART_DELAY_SEC,
                partial(self._start_recognition, session),
            )
        else:
            self._complete(session)

    # --- playback events ---

    def _handle_playback_ended(self, session: DriverSession) -> None:
        if session.finished:
            return
        logger.debug("Playback ended")
        session.should_continue = False
        if session.pending_restart is not None:
            session.pending_restart.cancel()
        session.schedule_stop(
            self._settings.PLAYBACK_END_GRACE_SEC,
            partial(self._after_playback_end, session),
        )

    def _after_playback_end(self, session: DriverSession) -> None:
        if session.finished:
            return
        if session.recognizer_active:
            self._stop_engine(session)
            if session.recognizer_active:
                return
        self._handle_end(session)

    def _handle_playback_error(self, session: DriverSession, error: Exception) -> None:
        if session.finished:
            return
        logger.error("Audio playback error: %s", error)
        fault = PlaybackFaultError("Audio playback failed")
        fault.__cause__ = error
        self._fail(session, fault)

    # --- exits ---

    def _complete(self, session: DriverSession) -> None:
        playback = session.playback
        if playback.ended or not session.has_time_remaining(self._settings.END_MARGIN_SEC):
            end_time = session.audio.duration
        else:
            end_time = playback.current_time
        session.close()
        segments = session.collector.complete(end_time)
        logger.info(
            "Transcription finished: %d segments, %d recognizer starts",
            len(segments),
            session.start_count,
        )
        if not session.future.done():
            session.future.set_result(segments)

    def _fail(self, session: DriverSession, error: TranscriptionError) -> None:
        self._stop_engine(session)
        session.recognizer_active = False
        session.close()
        if not session.future.done():
            session.future.set_exception(error)
