"""Audio collaborators: decode, playback clock, VAD."""
from .decoder import AudioDecoder, PydubAudioDecoder
from .playback import ClockPlayback, Playback
from .vad import VADProcessor, float32_to_pcm_bytes

__all__ = [
    "AudioDecoder",
    "PydubAudioDecoder",
    "ClockPlayback",
    "Playback",
    "VADProcessor",
    "float32_to_pcm_bytes",
]
