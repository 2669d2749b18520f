"""ASR: swappable Whisper-compatible chunk transcribers."""
from .base import ASREngine, ASRResult
from .cloudflare import CloudflareWhisperEngine
from .local_whisper import LocalWhisperEngine, load_whisper_model

__all__ = [
    "ASREngine",
    "ASRResult",
    "CloudflareWhisperEngine",
    "LocalWhisperEngine",
    "load_whisper_model",
]
