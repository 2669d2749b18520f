import asyncio

import pytest

from interview_scribe.audio.playback import ClockPlayback
from interview_scribe.errors import PlaybackFaultError
from tests.fakes import silent_audio


class TestClockPlayback:
    def test_clock_advances_and_ends(self):
        async def scenario():
            ended = asyncio.get_running_loop().create_future()
            playback = ClockPlayback(silent_audio(1.0), rate=5.0)
            playback.on_ended = lambda: ended.set_result(playback.current_time)
            assert playback.current_time == 0.0
            await playback.play()
            await asyncio.sleep(0.01)
            assert 0.0 < playback.current_time < 1.0
            position = await asyncio.wait_for(ended, timeout=1.0)
            return playback, position

        playback, position = asyncio.run(scenario())
        assert position == 1.0
        assert playback.ended

    def test_pause_freezes_position(self):
        async def scenario():
            playback = ClockPlayback(silent_audio(10.0), rate=10.0)
            await playback.play()
            await asyncio.sleep(0.02)
            playback.pause()
            frozen = playback.current_time
            await asyncio.sleep(0.02)
            return playback, frozen

        playback, frozen = asyncio.run(scenario())
        assert frozen > 0.0
        assert playback.current_time == frozen
        assert not playback.ended

    def test_release_is_idempotent_and_final(self):
        async def scenario():
            playback = ClockPlayback(silent_audio(5.0))
            await playback.play()
            playback.release()
            playback.release()
            assert playback.released
            with pytest.raises(PlaybackFaultError):
                await playback.play()

        asyncio.run(scenario())

    def test_rate_must_be_positive(self):
        with pytest.raises(ValueError):
            ClockPlayback(silent_audio(1.0), rate=0.0)
