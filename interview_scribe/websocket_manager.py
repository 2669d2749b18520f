"""
WebSocketManager: one WebSocket = one recording transcription.

Client sends the recording as a single binary message. Server sends JSON:
{"type": "session", "recording_id"} first, then "progress" and "segment"
messages while playback runs, and finally "completed" (diarized segments)
or "error". A client disconnect stops the driver; the transcription then
winds down through its normal exit path.
"""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, Optional

from fastapi import WebSocket
from pydantic import BaseModel

from interview_scribe.errors import TranscriptionError
from interview_scribe.models import Segment
from interview_scribe.schemas import (
    CompletedMessage,
    ErrorMessage,
    ProgressMessage,
    SegmentMessage,
    SegmentOut,
)
from interview_scribe.service import TranscriptionService

logger = logging.getLogger(__name__)


class WebSocketManager:
    def __init__(self, websocket: WebSocket, service: TranscriptionService) -> None:
        self._ws = websocket
        self._service = service
        self._recording_id = uuid.uuid4().hex[:12]
        # Outgoing messages; None = sender stops
        self._outbox: asyncio.Queue[Optional[BaseModel]] = asyncio.Queue()
        self._closed = False

    @property
    def recording_id(self) -> str:
        return self._recording_id

    async def _sender(self) -> None:
        """Drain outbox in order. A failed send marks the socket closed."""
        while True:
            msg = await self._outbox.get()
            if msg is None:
                break
            if self._closed:
                continue
            try:
                await self._ws.send_text(msg.model_dump_json())
            except Exception:
                self._closed = True

    def _on_progress(self, progress: float) -> None:
        self._outbox.put_nowait(ProgressMessage(progress=progress))

    def _on_segment(self, segment: Segment) -> None:
        self._outbox.put_nowait(SegmentMessage(segment=SegmentOut.from_segment(segment)))

    async def _watch_disconnect(self) -> None:
        """Stop the transcription when the client goes away."""
        while True:
            msg = await self._ws.receive()
            if msg.get("type") == "websocket.disconnect":
                logger.info("Client disconnected during %s; stopping", self._recording_id)
                self._closed = True
                self._service.stop()
                return

    async def _receive_audio(self) -> Optional[bytes]:
        while True:
            msg: dict[str, Any] = await self._ws.receive()
            if msg.get("type") == "websocket.disconnect":
                return None
            data = msg.get("bytes")
            if data:
                return data

    async def run(self) -> None:
        """Receive audio, run the service, stream messages until done."""
        try:
            await self._ws.send_text(json.dumps({"type": "session", "recording_id": self._recording_id}))
        except Exception:
            return
        audio = await self._receive_audio()
        if audio is None:
            return

        sender = asyncio.create_task(self._sender())
        watcher = asyncio.create_task(self._watch_disconnect())
        try:
            transcript = await self._service.process(
                self._recording_id,
                audio,
                on_progress=self._on_progress,
                on_segment=self._on_segment,
            )
            self._outbox.put_nowait(
                CompletedMessage(
                    recording_id=self._recording_id,
                    duration=transcript.duration,
                    segments=[SegmentOut.from_segment(s) for s in transcript.segments],
                )
            )
        except TranscriptionError as e:
            self._outbox.put_nowait(ErrorMessage(error=type(e).__name__, detail=str(e)))
        finally:
            watcher.cancel()
            try:
                await watcher
            except asyncio.CancelledError:
                pass
            self._outbox.put_nowait(None)
            await sender
