"""
SegmentCollector: ordered accumulation of finalized recognition results.

Append order is playback-time order. Engine-local result indices are not
used: the engine is restarted many times per recording and its indexing
resets on every restart. No deduplication; each engine session is assumed
to deliver each finalized result once.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Optional

from interview_scribe.models import Segment

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
SegmentCallback = Callable[[Segment], None]


class SegmentCollector:
    """
    Builds contiguous segments: each starts where the previous ended (0 for the first)
    and ends at the playback position at the moment of finalization.
    """

    def __init__(
        self,
        duration: float,
        on_segment: Optional[SegmentCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self._duration = duration
        self._on_segment = on_segment
        self._on_progress = on_progress
        self._segments: list[Segment] = []
        self._cursor = 0.0

    @property
    def segments(self) -> list[Segment]:
        return list(self._segments)

    @property
    def cursor(self) -> float:
        """End time of the last segment (0.0 before the first)."""
        return self._cursor

    def progress_at(self, current_time: float) -> float:
        if self._duration <= 0:
            return 100.0
        return min(100.0, current_time / self._duration * 100.0)

    def add(self, text: str, confidence: float, current_time: float) -> Segment:
        """Append one finalized result; returns the new segment."""
        end_time = max(self._cursor, current_time)
        segment = Segment(
            text=text.strip(),
            start_time=self._cursor,
            end_time=end_time,
            confidence=confidence,
        )
        self._segments.append(segment)
        self._cursor = end_time
        logger.debug("Segment %d [%.2f-%.2f]: %s", len(self._segments), segment.start_time, end_time, segment.text)
        if self._on_segment:
            self._on_segment(segment)
        if self._on_progress:
            self._on_progress(self.progress_at(current_time))
        return segment

    def complete(self, end_time: Optional[float] = None) -> list[Segment]:
        """
        Close the transcript: stretch the last segment to end_time (if later) and report 100%.
        Returns the final ordered list.
        """
        if end_time is not None and self._segments and end_time > self._cursor:
            self._segments[-1] = dataclasses.replace(self._segments[-1], end_time=end_time)
            self._cursor = end_time
        if self._on_progress:
            self._on_progress(100.0)
        return self.segments
