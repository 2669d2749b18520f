"""Transcript accumulation: finalized results → contiguous, ordered segments."""
from .collector import ProgressCallback, SegmentCallback, SegmentCollector

__all__ = ["ProgressCallback", "SegmentCallback", "SegmentCollector"]
