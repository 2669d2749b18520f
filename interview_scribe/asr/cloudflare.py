"""
CloudflareWhisperEngine: Whisper via Cloudflare Workers AI.

Accepts float32 audio; converts to PCM bytes for API.
Runs HTTP call in executor to avoid blocking event loop. HTTP failures
propagate as httpx errors; the streaming recognizer reports them as "network".
"""
from __future__ import annotations

import asyncio

import httpx
import numpy as np

from interview_scribe.asr.base import ASREngine, ASRResult
from interview_scribe.audio.vad import float32_to_pcm_bytes
from interview_scribe.config import get_settings

WHISPER_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/@cf/openai/whisper"


def _sync_transcribe_cloudflare(pcm_bytes: bytes, account_id: str, token: str) -> ASRResult:
    """Blocking HTTP call; run in executor."""
    url = WHISPER_URL.format(account_id=account_id)
    headers = {"Authorization": f"Bearer {token}"}
    body = {"audio": list(pcm_bytes)}

    with httpx.Client(timeout=30.0) as client:
        resp = client.post(url, headers=headers, json=body)
    resp.raise_for_status()

    data = resp.json()
    result = data.get("result", data)
    if isinstance(result, dict):
        text = result.get("text", result.get("transcript", ""))
    elif isinstance(result, str):
        text = result
    else:
        text = ""
    text = (text or "").strip()
    return ASRResult(text=text, confidence=1.0 if text else 0.0)


class CloudflareWhisperEngine(ASREngine):
    """Remote Whisper via Cloudflare Workers AI. Unavailable without account id and token."""

    def __init__(self, account_id: str | None = None, token: str | None = None) -> None:
        settings = get_settings()
        self._account_id = account_id if account_id is not None else settings.CLOUDFLARE_ACCOUNT_ID
        self._token = token if token is not None else settings.CLOUDFLARE_API_TOKEN

    @property
    def available(self) -> bool:
        return bool(self._account_id and self._token)

    async def transcribe(self, audio: np.ndarray) -> ASRResult:
        """Convert audio to PCM, run HTTP in executor."""
        pcm_bytes = float32_to_pcm_bytes(audio)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            _sync_transcribe_cloudflare,
            pcm_bytes,
            self._account_id,
            self._token,
        )
