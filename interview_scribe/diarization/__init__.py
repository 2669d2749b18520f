"""
Two-speaker diarization from signal features (energy, pitch, zero-crossing rate).

- No speaker model and no audio separation; single channel (the first).
- Assigns interviewer / interviewee labels to finalized transcript segments.

Limitations:
- Role assignment is a pitch heuristic (lower mean pitch → interviewer).
- Segment granularity comes from the recognition engine, not from fixed frames.
- More than two speakers are folded into two clusters.
"""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from interview_scribe.diarization.clustering import CLUSTER_ITERATIONS, assign_two_clusters
from interview_scribe.diarization.features import (
    PITCH_MIN_LAG,
    PITCH_WINDOW_SAMPLES,
    extract_all,
)
from interview_scribe.diarization.labeler import SMOOTHING_MAX_WORDS, label_clusters, smooth_labels
from interview_scribe.models import Segment

logger = logging.getLogger(__name__)


def diarize(
    channel_samples: np.ndarray,
    sample_rate: int,
    segments: Sequence[Segment],
    *,
    iterations: int = CLUSTER_ITERATIONS,
    max_island_words: int = SMOOTHING_MAX_WORDS,
    pitch_window: int = PITCH_WINDOW_SAMPLES,
    pitch_min_lag: int = PITCH_MIN_LAG,
) -> list[Segment]:
    """Label segments with speaker roles. Returns a new list; never raises for 0 or 1 segments."""
    if not segments:
        return []
    samples = np.asarray(channel_samples, dtype=np.float64)
    if samples.ndim > 1:
        samples = samples[0]

    features = extract_all(samples, sample_rate, segments, pitch_window, pitch_min_lag)
    partition = assign_two_clusters(features, iterations)
    labeled = label_clusters(segments, features, partition)
    smoothed = smooth_labels(labeled, max_island_words)
    logger.info(
        "Diarized %d segments: cluster sizes %d/%d",
        len(smoothed),
        len(partition.a),
        len(partition.b),
    )
    return smoothed


__all__ = ["diarize", "assign_two_clusters", "extract_all", "label_clusters", "smooth_labels"]
