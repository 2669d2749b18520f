import pytest

from interview_scribe.config import Settings
from interview_scribe.driver import RecognitionPlaybackDriver
from tests.fakes import FakePlayback, silent_audio


@pytest.fixture
def fast_settings():
    """Driver timings shrunk so scenarios run in milliseconds."""
    return Settings(
        INITIAL_START_DELAY_SEC=0.0,
        TRANSIENT_RESTART_DELAY_SEC=0.01,
        NORMAL_END_RESTART_DELAY_SEC=0.0,
        PLAYBACK_END_GRACE_SEC=0.0,
        END_MARGIN_SEC=1.0,
        DEFAULT_CONFIDENCE=0.9,
        PLAYBACK_VOLUME=0.01,
        STREAM_STEP_SECONDS=0.01,
        STREAM_MIN_CHUNK_SECONDS=0.5,
        STREAM_NO_SPEECH_TIMEOUT_SECONDS=1.0,
        STREAM_MAX_SESSION_SECONDS=60.0,
        SILENCE_RMS=0.01,
        VAD_ENABLED=False,
    )


@pytest.fixture
def audio():
    return silent_audio(10.0)


@pytest.fixture
def playbacks():
    """Every FakePlayback the driver creates, in order."""
    return []


@pytest.fixture
def make_driver(fast_settings, playbacks):
    def _make(engine, fail_on_play=False, settings=None):
        def factory(decoded):
            playback = FakePlayback(decoded, fail_on_play=fail_on_play)
            playbacks.append(playback)
            return playback

        return RecognitionPlaybackDriver(engine, playback_factory=factory, settings=settings or fast_settings)

    return _make
