"""
Recognition-playback driver scenarios against a scripted recognizer and a
test-controlled playback clock.
"""
import asyncio

import pytest

from interview_scribe.driver import DriverState, RecognitionPlaybackDriver
from interview_scribe.errors import (
    PermissionDeniedError,
    PlaybackFaultError,
    RecognitionFaultError,
    TranscriptionError,
    UnsupportedCapabilityError,
)
from tests.fakes import FakeRecognitionEngine


def assert_contiguous(segments, duration=None):
    assert segments[0].start_time == 0.0
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_time == nxt.start_time
    for s in segments:
        assert s.end_time >= s.start_time
    if duration is not None:
        assert segments[-1].end_time == duration


class TestTransientRecovery:
    def test_no_speech_twice_restarts_and_resolves(self, make_driver, audio, playbacks):
        def first(engine):
            engine.at(1.0)
            engine.result("hello there how are you")
            engine.at(2.0)
            engine.error("no-speech")
            engine.end()

        def second(engine):
            engine.at(3.0)
            engine.result("fine thanks and you")
            engine.at(4.0)
            engine.error("no-speech")
            engine.end()

        def third(engine):
            engine.at(6.0)
            engine.result("all good here")
            engine.playback.finish()

        engine = FakeRecognitionEngine([first, second, third])
        driver = make_driver(engine)

        segments = asyncio.run(driver.transcribe(audio))

        assert engine.start_calls == 3
        assert [s.text for s in segments] == [
            "hello there how are you",
            "fine thanks and you",
            "all good here",
        ]
        assert_contiguous(segments, duration=10.0)
        assert segments[0].end_time == 1.0
        assert segments[1].end_time == 3.0
        assert playbacks[0].release_calls == 1
        assert driver.state is DriverState.IDLE

    def test_aborted_is_transient(self, make_driver, audio):
        def first(engine):
            engine.at(0.5)
            engine.error("aborted")
            engine.end()

        def second(engine):
            engine.at(9.5)
            engine.result("the rest of it")
            engine.end()

        engine = FakeRecognitionEngine([first, second])
        segments = asyncio.run(make_driver(engine).transcribe(audio))

        assert engine.start_calls == 2
        assert len(segments) == 1

    def test_transient_halt_near_end_resolves(self, make_driver, audio):
        def first(engine):
            engine.at(4.0)
            engine.result("only phrase here")
            engine.at(9.2)
            engine.error("no-speech")

        engine = FakeRecognitionEngine([first])
        segments = asyncio.run(make_driver(engine).transcribe(audio))

        assert engine.start_calls == 1
        assert_contiguous(segments, duration=10.0)

    def test_clean_end_with_time_left_restarts(self, make_driver, audio, playbacks):
        def first(engine):
            engine.at(2.0)
            engine.result("first words spoken")
            engine.end()

        def second(engine):
            engine.at(9.5)
            engine.result("last words spoken")
            engine.end()

        engine = FakeRecognitionEngine([first, second])
        segments = asyncio.run(make_driver(engine).transcribe(audio))

        assert engine.start_calls == 2
        assert [s.end_time for s in segments] == [2.0, 10.0]
        assert playbacks[0].release_calls == 1

    def test_error_followed_by_end_schedules_one_restart(self, make_driver, audio):
        def first(engine):
            engine.at(1.0)
            engine.error("no-speech")
            engine.end()

        def second(engine):
            engine.playback.finish()

        engine = FakeRecognitionEngine([first, second])
        asyncio.run(make_driver(engine).transcribe(audio))

        # a second start while running would raise inside the fake
        assert engine.start_calls == 2


class TestResults:
    def test_interim_results_are_ignored(self, make_driver, audio):
        def first(engine):
            engine.at(1.0)
            engine.result("hel", is_final=False)
            engine.at(2.0)
            engine.result("hello", is_final=True)
            engine.playback.finish()

        segments = asyncio.run(make_driver(FakeRecognitionEngine([first])).transcribe(audio))

        assert [s.text for s in segments] == ["hello"]

    def test_missing_confidence_uses_default(self, make_driver, audio):
        def first(engine):
            engine.at(1.0)
            engine.result("  padded text  ", confidence=None)
            engine.playback.finish()

        segments = asyncio.run(make_driver(FakeRecognitionEngine([first])).transcribe(audio))

        assert segments[0].confidence == 0.9
        assert segments[0].text == "padded text"

    def test_progress_and_segment_callbacks(self, make_driver, audio):
        progress, seen = [], []

        def first(engine):
            engine.at(2.5)
            engine.result("quarter of the way")
            engine.at(5.0)
            engine.result("half of the way")
            engine.playback.finish()

        asyncio.run(
            make_driver(FakeRecognitionEngine([first])).transcribe(
                audio, on_progress=progress.append, on_segment=seen.append
            )
        )

        assert progress == [25.0, 50.0, 100.0]
        assert [s.text for s in seen] == ["quarter of the way", "half of the way"]


class TestFatalErrors:
    def test_not_allowed_rejects_with_permission_denied(self, make_driver, audio, playbacks):
        def first(engine):
            engine.at(1.0)
            engine.error("not-allowed")
            engine.end()

        engine = FakeRecognitionEngine([first])
        with pytest.raises(PermissionDeniedError):
            asyncio.run(make_driver(engine).transcribe(audio))

        assert playbacks[0].release_calls == 1
        assert playbacks[0].pause_calls >= 1
        assert engine.start_calls == 1

    def test_unknown_code_rejects_with_recognition_fault(self, make_driver, audio, playbacks):
        def first(engine):
            engine.error("network")

        with pytest.raises(RecognitionFaultError) as exc_info:
            asyncio.run(make_driver(FakeRecognitionEngine([first])).transcribe(audio))

        assert exc_info.value.code == "network"
        assert playbacks[0].release_calls == 1

    def test_no_engine_is_unsupported(self, make_driver, audio, playbacks):
        with pytest.raises(UnsupportedCapabilityError):
            asyncio.run(make_driver(None).transcribe(audio))
        assert playbacks == []

    def test_unavailable_engine_is_unsupported(self, make_driver, audio, playbacks):
        with pytest.raises(UnsupportedCapabilityError):
            asyncio.run(make_driver(FakeRecognitionEngine(available=False)).transcribe(audio))
        assert playbacks == []

    def test_playback_that_cannot_start(self, make_driver, audio, playbacks):
        engine = FakeRecognitionEngine()
        with pytest.raises(PlaybackFaultError):
            asyncio.run(make_driver(engine, fail_on_play=True).transcribe(audio))

        assert engine.start_calls == 0
        assert playbacks[0].release_calls == 1

    def test_playback_error_stops_recognizer(self, make_driver, audio, playbacks):
        def first(engine):
            engine.at(3.0)
            engine.playback.fail(OSError("device lost"))

        engine = FakeRecognitionEngine([first])
        with pytest.raises(PlaybackFaultError):
            asyncio.run(make_driver(engine).transcribe(audio))

        assert engine.stop_calls == 1
        assert playbacks[0].release_calls == 1


class TestStop:
    def test_stop_resolves_through_recognizer_end(self, make_driver, audio, playbacks):
        holder = {}

        def first(engine):
            engine.at(3.0)
            engine.result("we stop right after this")
            holder["driver"].stop()
            holder["driver"].stop()

        engine = FakeRecognitionEngine([first])
        driver = make_driver(engine)
        holder["driver"] = driver

        segments = asyncio.run(driver.transcribe(audio))

        assert [s.text for s in segments] == ["we stop right after this"]
        assert engine.stop_calls == 1
        assert engine.start_calls == 1
        assert playbacks[0].release_calls == 1

    def test_stop_before_first_start(self, make_driver, fast_settings, audio, playbacks):
        settings = fast_settings.model_copy(update={"INITIAL_START_DELAY_SEC": 5.0})
        engine = FakeRecognitionEngine()
        driver = make_driver(engine, settings=settings)

        async def scenario():
            task = asyncio.create_task(driver.transcribe(audio))
            for _ in range(3):
                await asyncio.sleep(0)
            assert driver.state is DriverState.STARTING
            driver.stop()
            return await asyncio.wait_for(task, timeout=1.0)

        segments = asyncio.run(scenario())

        assert segments == []
        assert engine.start_calls == 0
        assert playbacks[0].release_calls == 1

    def test_stop_resolves_when_recognizer_stop_fails(self, make_driver, audio, playbacks):
        class StubbornEngine(FakeRecognitionEngine):
            def stop(self):
                self.stop_calls += 1
                raise RuntimeError("recognizer refused to stop")

        holder = {}

        def first(engine):
            engine.at(3.0)
            engine.result("still talking here")
            holder["driver"].stop()

        engine = StubbornEngine([first])
        driver = make_driver(engine)
        holder["driver"] = driver

        async def scenario():
            return await asyncio.wait_for(driver.transcribe(audio), timeout=2.0)

        segments = asyncio.run(scenario())

        assert [s.text for s in segments] == ["still talking here"]
        assert segments[-1].end_time == 3.0
        assert engine.stop_calls == 1
        assert playbacks[0].release_calls == 1
        assert driver.state is DriverState.IDLE

    def test_stop_without_session_is_noop(self, make_driver):
        make_driver(FakeRecognitionEngine()).stop()


class TestSessions:
    def test_second_concurrent_transcribe_is_rejected(self, make_driver, audio):
        holder = {}

        def first(engine):
            holder["second"] = asyncio.ensure_future(holder["driver"].transcribe(audio))
            engine.playback.finish()

        driver = make_driver(FakeRecognitionEngine([first]))
        holder["driver"] = driver

        async def scenario():
            await driver.transcribe(audio)
            with pytest.raises(TranscriptionError):
                await holder["second"]

        asyncio.run(scenario())

    def test_driver_is_reusable_after_completion(self, make_driver, audio, playbacks):
        def finish(engine):
            engine.at(4.0)
            engine.result("one more time")
            engine.playback.finish()

        driver = make_driver(FakeRecognitionEngine([finish, finish]))

        async def scenario():
            first = await driver.transcribe(audio)
            second = await driver.transcribe(audio)
            return first, second

        first, second = asyncio.run(scenario())

        assert len(first) == len(second) == 1
        assert len(playbacks) == 2

    def test_decodes_raw_bytes_with_decoder(self, fast_settings, audio):
        from tests.fakes import FakeDecoder, FakePlayback

        def first(engine):
            engine.playback.finish()

        decoder = FakeDecoder(audio)
        driver = RecognitionPlaybackDriver(
            FakeRecognitionEngine([first]),
            decoder=decoder,
            playback_factory=FakePlayback,
            settings=fast_settings,
        )

        assert asyncio.run(driver.transcribe(b"raw bytes")) == []
        assert decoder.calls == 1
