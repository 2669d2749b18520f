"""Application configuration. Loads from env vars."""
import logging
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Audio: decoded buffers are resampled to this rate (webrtcvad accepts 8/16/32/48 kHz)
    SAMPLE_RATE: int = 16000
    FRAME_MS: int = 20

    # Recognition language passed to the chunk transcriber
    RECOGNITION_LANGUAGE: str = "ru"

    # Driver timings (seconds). Fixed backoff, no growth; remaining playback is the only bound.
    INITIAL_START_DELAY_SEC: float = 0.5
    TRANSIENT_RESTART_DELAY_SEC: float = 0.3  # after no-speech / aborted
    NORMAL_END_RESTART_DELAY_SEC: float = 0.1  # engine ended cleanly
    PLAYBACK_END_GRACE_SEC: float = 0.5  # let the engine finalize the tail before stopping it
    END_MARGIN_SEC: float = 1.0  # no restart when less than this remains
    DEFAULT_CONFIDENCE: float = 0.9  # when the engine reports none

    # Playback: near-silent volume; rate > 1 runs the playback clock faster than real time
    PLAYBACK_VOLUME: float = 0.01
    PLAYBACK_RATE: float = 1.0

    # Streaming recognizer (continuous recognition on top of a chunk transcriber)
    STREAM_STEP_SECONDS: float = 0.5
    STREAM_MIN_CHUNK_SECONDS: float = 2.0
    STREAM_NO_SPEECH_TIMEOUT_SECONDS: float = 8.0
    STREAM_MAX_SESSION_SECONDS: float = 60.0
    SILENCE_RMS: float = 0.01  # speech gate when VAD is disabled

    # VAD (webrtcvad aggressiveness 0-3); a window counts as speech above this ratio of voiced frames
    VAD_ENABLED: bool = True
    VAD_AGGRESSIVENESS: int = 2
    VAD_MIN_SPEECH_RATIO: float = 0.1

    # ASR backend: "local" | "cloudflare"
    ASR_BACKEND: Literal["local", "cloudflare"] = "local"

    # Cloudflare Workers AI (when ASR_BACKEND=cloudflare)
    CLOUDFLARE_ACCOUNT_ID: str = ""
    CLOUDFLARE_API_TOKEN: str = ""

    # Local Whisper (when ASR_BACKEND=local); model loaded once at startup
    LOCAL_WHISPER_MODEL: str = "base"  # base | small | medium | large-v3
    LOCAL_WHISPER_DEVICE: Literal["cpu", "cuda"] = "cpu"
    LOCAL_WHISPER_COMPUTE_TYPE: Literal["int8", "float16"] = "int8"
    LOCAL_WHISPER_BEAM_SIZE: int = 5

    # Two-speaker diarization (signal features only, no speaker model)
    DIARIZATION_ENABLED: bool = True
    PITCH_WINDOW_SAMPLES: int = 2048
    PITCH_MIN_LAG: int = 20
    CLUSTER_ITERATIONS: int = 10
    SMOOTHING_MAX_WORDS: int = 3  # islands with fewer words are absorbed by their neighbours

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only)
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Root logging from LOG_LEVEL / LOG_FILE. Safe to call more than once."""
    settings = settings or get_settings()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
