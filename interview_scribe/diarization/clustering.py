"""
Two-cluster iterative relocation over normalized (energy, pitch, zcr).

Deterministic: centroids start at points 0 and n // 2, and a fixed number of
rounds runs (no convergence test, no randomness).
"""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from interview_scribe.models import ClusterPartition, FeatureVector

logger = logging.getLogger(__name__)

CLUSTER_ITERATIONS = 10

# Undefined pitch sits in the middle of the normalized range
UNDEFINED_PITCH_NORMALIZED = 0.5


def _normalize(values: np.ndarray, defined: np.ndarray | None = None) -> np.ndarray:
    """Min-max to [0, 1]; a constant dimension becomes 0. Undefined entries become the midpoint."""
    out = np.full(values.shape, UNDEFINED_PITCH_NORMALIZED, dtype=np.float64)
    mask = np.ones(values.shape, dtype=bool) if defined is None else defined
    if not mask.any():
        return out
    lo = values[mask].min()
    hi = values[mask].max()
    span = (hi - lo) or 1.0
    out[mask] = (values[mask] - lo) / span
    return out


def normalize_features(features: Sequence[FeatureVector]) -> np.ndarray:
    """(n, 3) matrix of normalized energy, pitch, zcr."""
    energy = np.array([f.energy for f in features], dtype=np.float64)
    zcr = np.array([f.zcr for f in features], dtype=np.float64)
    has_pitch = np.array([f.pitch is not None for f in features], dtype=bool)
    pitch = np.array([f.pitch if f.pitch is not None else 0.0 for f in features], dtype=np.float64)
    return np.column_stack(
        [
            _normalize(energy),
            _normalize(pitch, has_pitch),
            _normalize(zcr),
        ]
    )


def _indices(mask: np.ndarray) -> tuple[int, ...]:
    return tuple(int(i) for i in np.flatnonzero(mask))


def assign_two_clusters(
    features: Sequence[FeatureVector],
    iterations: int = CLUSTER_ITERATIONS,
) -> ClusterPartition:
    """
    Partition feature vectors into two clusters.

    n < 2: everything in cluster a. A round that empties a cluster stops the
    loop and the previous round's partition is kept; when the first round is
    already degenerate everything goes to cluster a.
    """
    n = len(features)
    if n < 2:
        return ClusterPartition(a=tuple(range(n)), b=())

    points = normalize_features(features)
    centroid_a = points[0].copy()
    centroid_b = points[n // 2].copy()
    partition = ClusterPartition(a=tuple(range(n)), b=())

    for round_no in range(iterations):
        dist_a = np.linalg.norm(points - centroid_a, axis=1)
        dist_b = np.linalg.norm(points - centroid_b, axis=1)
        in_a = dist_a <= dist_b
        if in_a.all() or not in_a.any():
            logger.debug("Clustering round %d left a cluster empty; keeping previous partition", round_no)
            break
        partition = ClusterPartition(a=_indices(in_a), b=_indices(~in_a))
        centroid_a = points[in_a].mean(axis=0)
        centroid_b = points[~in_a].mean(axis=0)

    return partition
