"""StreamingRecognizer against a fast ClockPlayback and a fake transcriber."""
import asyncio

import httpx
import numpy as np
import pytest

from interview_scribe.audio.playback import ClockPlayback
from interview_scribe.driver import RecognitionPlaybackDriver
from interview_scribe.errors import RecognitionStartError
from interview_scribe.models import DecodedAudio
from interview_scribe.recognition.streaming import StreamingRecognizer
from tests.fakes import SAMPLE_RATE, FakeASR, periodic_tone, silent_audio

RATE = 20.0


def tone_audio(duration: float) -> DecodedAudio:
    samples = periodic_tone(80, int(duration * SAMPLE_RATE), amplitude=0.5).astype(np.float32)
    return DecodedAudio(channels=samples, sample_rate=SAMPLE_RATE)


async def run_session(recognizer, playback, stop_after=None):
    """Run one recognition session and return the events it emitted."""
    events = []
    done = asyncio.get_running_loop().create_future()
    recognizer.on_start = lambda: events.append("start")
    recognizer.on_result = lambda results: events.append(("result", results[0].transcript, results[0].is_final))
    recognizer.on_error = lambda code: events.append(("error", code))

    def on_end():
        events.append("end")
        done.set_result(None)

    recognizer.on_end = on_end
    recognizer.attach(playback)
    await playback.play()
    recognizer.start()
    if stop_after is not None:
        await asyncio.sleep(stop_after)
        recognizer.stop()
    await asyncio.wait_for(done, timeout=5.0)
    playback.release()
    return events


class TestStreamingRecognizer:
    def test_silence_ends_with_no_speech(self, fast_settings):
        asr = FakeASR()
        recognizer = StreamingRecognizer(asr, settings=fast_settings)
        events = asyncio.run(run_session(recognizer, ClockPlayback(silent_audio(10.0), rate=RATE)))

        assert events == ["start", ("error", "no-speech"), "end"]
        assert asr.calls == 0

    def test_speech_produces_final_results(self, fast_settings):
        recognizer = StreamingRecognizer(FakeASR("hello there"), settings=fast_settings)
        events = asyncio.run(run_session(recognizer, ClockPlayback(tone_audio(2.0), rate=RATE)))

        results = [e for e in events if isinstance(e, tuple) and e[0] == "result"]
        assert events[0] == "start"
        assert events[-1] == "end"
        assert results
        assert all(r == ("result", "hello there", True) for r in results)

    def test_stop_flushes_pending_window(self, fast_settings):
        asr = FakeASR("cut short")
        recognizer = StreamingRecognizer(asr, settings=fast_settings)
        events = asyncio.run(run_session(recognizer, ClockPlayback(tone_audio(10.0)), stop_after=0.1))

        assert events == ["start", ("result", "cut short", True), "end"]
        assert asr.calls == 1

    def test_http_failure_is_network_error(self, fast_settings):
        recognizer = StreamingRecognizer(FakeASR(error=httpx.ConnectError("unreachable")), settings=fast_settings)
        events = asyncio.run(run_session(recognizer, ClockPlayback(tone_audio(5.0), rate=RATE)))

        assert events == ["start", ("error", "network"), "end"]

    def test_other_failure_is_audio_capture_error(self, fast_settings):
        recognizer = StreamingRecognizer(FakeASR(error=RuntimeError("model crashed")), settings=fast_settings)
        events = asyncio.run(run_session(recognizer, ClockPlayback(tone_audio(5.0), rate=RATE)))

        assert events == ["start", ("error", "audio-capture"), "end"]

    def test_start_requires_attached_playback(self, fast_settings):
        recognizer = StreamingRecognizer(FakeASR(), settings=fast_settings)

        async def scenario():
            with pytest.raises(RecognitionStartError):
                recognizer.start()

        asyncio.run(scenario())

    def test_double_start_is_rejected(self, fast_settings):
        recognizer = StreamingRecognizer(FakeASR(), settings=fast_settings)

        async def scenario():
            playback = ClockPlayback(silent_audio(10.0), rate=RATE)
            recognizer.attach(playback)
            await playback.play()
            recognizer.start()
            with pytest.raises(RecognitionStartError):
                recognizer.start()
            recognizer.stop()
            while recognizer.running:
                await asyncio.sleep(0.01)
            playback.release()

        asyncio.run(scenario())

    def test_unavailable_transcriber(self, fast_settings):
        class Offline(FakeASR):
            @property
            def available(self):
                return False

        assert StreamingRecognizer(Offline(), settings=fast_settings).available is False


class TestDriverWithStreamingRecognizer:
    def test_full_recording_is_transcribed(self, fast_settings):
        asr = FakeASR("some words spoken")
        driver = RecognitionPlaybackDriver(
            StreamingRecognizer(asr, settings=fast_settings),
            playback_factory=lambda audio: ClockPlayback(audio, rate=RATE),
            settings=fast_settings,
        )

        segments = asyncio.run(driver.transcribe(tone_audio(3.0)))

        assert segments
        assert segments[0].start_time == 0.0
        assert segments[-1].end_time == pytest.approx(3.0)
        for prev, nxt in zip(segments, segments[1:]):
            assert prev.end_time == nxt.start_time
        assert {s.text for s in segments} == {"some words spoken"}
        assert all(s.confidence == 0.7 for s in segments)

    def test_silent_recording_restarts_until_playback_ends(self, fast_settings):
        asr = FakeASR()
        driver = RecognitionPlaybackDriver(
            StreamingRecognizer(asr, settings=fast_settings),
            playback_factory=lambda audio: ClockPlayback(audio, rate=RATE),
            settings=fast_settings,
        )

        assert asyncio.run(driver.transcribe(silent_audio(4.0))) == []
        assert asr.calls == 0
