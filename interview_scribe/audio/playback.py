"""
Playback: a playback head over a DecodedAudio buffer.

The driver only needs play/pause/release, a readable clock and ended/error
callbacks. ClockPlayback advances with the event loop clock (optionally
faster than real time) and is what the streaming recognizer listens to.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from interview_scribe.errors import PlaybackFaultError
from interview_scribe.models import DecodedAudio

logger = logging.getLogger(__name__)


class Playback(ABC):
    """Playback collaborator. on_ended() fires once when the end is reached; on_error(exc) on failure."""

    def __init__(self, audio: DecodedAudio, volume: float = 1.0) -> None:
        self.audio = audio
        self.volume = volume
        self.on_ended: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

    @property
    def duration(self) -> float:
        return self.audio.duration

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Playback position in seconds."""
        ...

    @property
    @abstractmethod
    def ended(self) -> bool:
        ...

    @abstractmethod
    async def play(self) -> None:
        """Start (or resume) playback. Raises PlaybackFaultError when it cannot start."""
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def release(self) -> None:
        """Free the playback resource. Idempotent."""
        ...


class ClockPlayback(Playback):
    """Position = elapsed loop time * rate. rate > 1 plays faster than real time."""

    def __init__(self, audio: DecodedAudio, volume: float = 1.0, rate: float = 1.0) -> None:
        super().__init__(audio, volume)
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = rate
        self._position = 0.0
        self._started_at: Optional[float] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._end_handle: Optional[asyncio.TimerHandle] = None
        self._ended = False
        self._released = False

    @property
    def current_time(self) -> float:
        if self._started_at is None or self._loop is None:
            return self._position
        elapsed = (self._loop.time() - self._started_at) * self._rate
        return min(self.duration, self._position + elapsed)

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def released(self) -> bool:
        return self._released

    async def play(self) -> None:
        if self._released:
            raise PlaybackFaultError("Playback resource already released")
        if self._started_at is not None or self._ended:
            return
        self._loop = asyncio.get_running_loop()
        self._started_at = self._loop.time()
        remaining = max(0.0, self.duration - self._position) / self._rate
        self._end_handle = self._loop.call_later(remaining, self._finish)
        logger.debug("Playback started at %.2fs (rate=%.2f, volume=%.2f)", self._position, self._rate, self.volume)

    def pause(self) -> None:
        if self._started_at is None:
            return
        self._position = self.current_time
        self._started_at = None
        if self._end_handle is not None:
            self._end_handle.cancel()
            self._end_handle = None

    def release(self) -> None:
        if self._released:
            return
        self.pause()
        self._released = True
        logger.debug("Playback released at %.2fs", self._position)

    def _finish(self) -> None:
        self._end_handle = None
        self._position = self.duration
        self._started_at = None
        self._ended = True
        if self.on_ended:
            self.on_ended()
