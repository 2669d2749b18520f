"""
RecognitionEngine: continuous speech recognition event contract.

The driver depends only on this contract: start(), stop(), and four event
callbacks assigned by the caller:

- on_start()
- on_result(results: list[RecognitionAlternative])   # interim and final
- on_error(code: str)                                 # usually followed by on_end
- on_end()

Error codes follow the Web Speech API vocabulary.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from interview_scribe.models import RecognitionAlternative

if TYPE_CHECKING:
    from interview_scribe.audio.playback import Playback

NO_SPEECH = "no-speech"
ABORTED = "aborted"
NOT_ALLOWED = "not-allowed"
SERVICE_NOT_ALLOWED = "service-not-allowed"
NETWORK = "network"
AUDIO_CAPTURE = "audio-capture"

TRANSIENT_CODES = frozenset({NO_SPEECH, ABORTED})
PERMISSION_CODES = frozenset({NOT_ALLOWED, SERVICE_NOT_ALLOWED})


class HaltKind(str, Enum):
    TRANSIENT = "transient"
    PERMISSION = "permission"
    FATAL = "fatal"


def classify_error(code: str) -> HaltKind:
    """Transient codes are recovered by restarting; anything unrecognized is fatal."""
    if code in TRANSIENT_CODES:
        return HaltKind.TRANSIENT
    if code in PERMISSION_CODES:
        return HaltKind.PERMISSION
    return HaltKind.FATAL


class RecognitionEngine(ABC):
    """Base for continuous recognizers. Subclasses call the _emit_* helpers."""

    def __init__(self) -> None:
        self.on_start: Optional[Callable[[], None]] = None
        self.on_result: Optional[Callable[[list[RecognitionAlternative]], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    @property
    def available(self) -> bool:
        """False when this engine cannot run at all."""
        return True

    def attach(self, playback: "Playback") -> None:
        """Audio source to listen to. Engines that hear audio some other way ignore it."""

    @abstractmethod
    def start(self) -> None:
        """Begin a recognition session. Raises if one is already running."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """Finish the current session; pending audio is finalized, then on_end fires."""
        ...

    def _emit_start(self) -> None:
        if self.on_start:
            self.on_start()

    def _emit_result(self, results: list[RecognitionAlternative]) -> None:
        if self.on_result:
            self.on_result(results)

    def _emit_error(self, code: str) -> None:
        if self.on_error:
            self.on_error(code)

    def _emit_end(self) -> None:
        if self.on_end:
            self.on_end()
