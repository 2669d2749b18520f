"""
FastAPI app: transcription with two-speaker diarization.

HTTP: POST /api/transcribe with the raw recording as the request body →
diarized segments. WebSocket: /ws/transcribe streams progress and segments
while the recording plays through the recognizer.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect

from interview_scribe.asr.base import ASREngine
from interview_scribe.asr.cloudflare import CloudflareWhisperEngine
from interview_scribe.asr.local_whisper import LocalWhisperEngine, load_whisper_model
from interview_scribe.audio.vad import VADProcessor
from interview_scribe.config import configure_logging, get_settings
from interview_scribe.driver import RecognitionPlaybackDriver
from interview_scribe.errors import (
    PermissionDeniedError,
    PlaybackFaultError,
    RecognitionFaultError,
    TranscriptionError,
    UnsupportedCapabilityError,
)
from interview_scribe.recognition.streaming import StreamingRecognizer
from interview_scribe.schemas import SegmentOut, TranscriptResponse
from interview_scribe.service import TranscriptionService
from interview_scribe.websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)


def create_asr_engine(app: FastAPI) -> ASREngine:
    """Return ASR engine based on config. Local uses singleton model from app.state."""
    settings = get_settings()
    if settings.ASR_BACKEND == "cloudflare":
        return CloudflareWhisperEngine()
    model = getattr(app.state, "whisper_model", None)
    return LocalWhisperEngine(model=model)


def build_service(app: FastAPI) -> TranscriptionService:
    """One service (and driver) per recording; the driver runs one transcription at a time."""
    settings = get_settings()
    vad = VADProcessor(aggressiveness=settings.VAD_AGGRESSIVENESS) if settings.VAD_ENABLED else None
    engine = StreamingRecognizer(create_asr_engine(app), vad=vad, settings=settings)
    driver = RecognitionPlaybackDriver(engine, settings=settings)
    return TranscriptionService(driver, settings=settings)


def get_transcription_service(request: Request) -> TranscriptionService:
    return build_service(request.app)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    # Load Whisper model once at startup when using local backend (singleton)
    app.state.whisper_model = None
    if settings.ASR_BACKEND == "local":
        try:
            app.state.whisper_model = load_whisper_model()
        except ImportError as e:
            logger.warning("Local ASR unavailable: %s", e)
    yield
    app.state.whisper_model = None


app = FastAPI(
    title="Interview Transcriber",
    description="Playback-driven speech recognition with two-speaker diarization",
    lifespan=lifespan,
)


def _http_error(e: TranscriptionError) -> HTTPException:
    if isinstance(e, UnsupportedCapabilityError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, PlaybackFaultError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, RecognitionFaultError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=409, detail=str(e))


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/transcribe", response_model=TranscriptResponse)
async def transcribe(
    request: Request,
    service: TranscriptionService = Depends(get_transcription_service),
) -> TranscriptResponse:
    """Transcribe and diarize a recording sent as the raw request body."""
    audio = await request.body()
    if not audio:
        raise HTTPException(status_code=400, detail="Request body must contain audio")
    recording_id = uuid.uuid4().hex[:12]
    try:
        transcript = await service.process(recording_id, audio)
    except TranscriptionError as e:
        raise _http_error(e)
    return TranscriptResponse(
        recording_id=recording_id,
        status="completed",
        duration=transcript.duration,
        segments=[SegmentOut.from_segment(s) for s in transcript.segments],
    )


@app.websocket("/ws/transcribe")
async def websocket_transcribe(websocket: WebSocket) -> None:
    """
    WebSocket: client sends the recording as one binary message.
    Server sends JSON: session, progress, segment, then completed | error.
    """
    await websocket.accept()
    manager = WebSocketManager(websocket, build_service(websocket.app))
    try:
        await manager.run()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket transcription %s failed", manager.recording_id)
        try:
            await websocket.close()
        except Exception:
            pass
