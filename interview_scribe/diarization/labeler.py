"""
Cluster → role mapping and short-island smoothing.

Role convention: the cluster with the lower mean pitch is the interviewer.
This is a heuristic, not a property of voices; labels are approximate.
"""
from __future__ import annotations

import dataclasses
from typing import Optional, Sequence

from interview_scribe.models import ClusterPartition, FeatureVector, Segment, SpeakerLabel

SMOOTHING_MAX_WORDS = 3


def mean_pitch(features: Sequence[FeatureVector], indices: Sequence[int]) -> Optional[float]:
    """Mean of the defined pitches of the given members; None when there are none."""
    pitches = [features[i].pitch for i in indices if features[i].pitch is not None]
    if not pitches:
        return None
    return sum(pitches) / len(pitches)


def label_clusters(
    segments: Sequence[Segment],
    features: Sequence[FeatureVector],
    partition: ClusterPartition,
) -> list[Segment]:
    """
    Label every segment interviewer or interviewee.

    When either cluster has no mean pitch (empty, or all pitches undefined) the
    second cluster takes the interviewer role, so a lone segment is an interviewee.
    """
    pitch_a = mean_pitch(features, partition.a)
    pitch_b = mean_pitch(features, partition.b)
    if pitch_a is not None and pitch_b is not None and pitch_a < pitch_b:
        interviewer = set(partition.a)
    else:
        interviewer = set(partition.b)

    return [
        dataclasses.replace(
            seg,
            speaker_label=SpeakerLabel.INTERVIEWER if i in interviewer else SpeakerLabel.INTERVIEWEE,
        )
        for i, seg in enumerate(segments)
    ]


def smooth_labels(segments: Sequence[Segment], max_words: int = SMOOTHING_MAX_WORDS) -> list[Segment]:
    """
    Absorb short single-segment islands into their surrounding speaker.

    One left-to-right pass; each decision sees the already-smoothed left
    neighbour. Applying it twice gives the same result as once.
    """
    smoothed = list(segments)
    for i in range(1, len(smoothed) - 1):
        prev = smoothed[i - 1].speaker_label
        curr = smoothed[i].speaker_label
        nxt = smoothed[i + 1].speaker_label
        if prev == nxt and curr != prev and smoothed[i].word_count < max_words:
            smoothed[i] = dataclasses.replace(smoothed[i], speaker_label=prev)
    return smoothed
