"""
Per-segment acoustic features: RMS energy, autocorrelation pitch, zero-crossing rate.

Segment boundaries come from the recognition engine's finalization cadence,
not from fixed analysis frames, so feature quality follows the engine.
"""
from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from interview_scribe.models import FeatureVector, Segment

PITCH_WINDOW_SAMPLES = 2048
PITCH_MIN_LAG = 20


def _slice(samples: np.ndarray, sample_rate: int, start_time: float, end_time: float) -> np.ndarray:
    start = max(0, int(np.floor(start_time * sample_rate)))
    end = max(start, int(np.floor(end_time * sample_rate)))
    return np.asarray(samples[start:end], dtype=np.float64)


def compute_energy(data: np.ndarray) -> float:
    """Root-mean-square of the slice; 0.0 when empty."""
    if data.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(data))))


def compute_zero_crossing_rate(data: np.ndarray) -> float:
    """
    Fraction of consecutive sample pairs whose sign differs (x >= 0 vs x < 0).

    Normalized by the number of pairs (len - 1), so a strictly alternating slice scores 1.0.
    """
    if data.size < 2:
        return 0.0
    negative = data < 0
    crossings = np.count_nonzero(negative[1:] != negative[:-1])
    return float(crossings) / float(data.size - 1)


def estimate_pitch(
    data: np.ndarray,
    sample_rate: int,
    window_samples: int = PITCH_WINDOW_SAMPLES,
    min_lag: int = PITCH_MIN_LAG,
) -> Optional[float]:
    """
    Autocorrelation pitch estimate in Hz.

    score(L) = 1 - sum|w[i] - w[i + L]| / (len - L) for L in [min_lag, len / 2).
    The first lag strictly improving on the running best (initially 0) wins.
    Returns None when no lag improves on 0.
    """
    window = np.asarray(data[:window_samples], dtype=np.float64)
    n = window.size
    best_score = 0.0
    best_lag = 0
    lag = min_lag
    while lag < n / 2:
        diff = np.abs(window[: n - lag] - window[lag:])
        score = 1.0 - float(diff.sum()) / (n - lag)
        if score > best_score:
            best_score = score
            best_lag = lag
        lag += 1
    if best_lag == 0:
        return None
    return sample_rate / best_lag


def extract_features(
    samples: np.ndarray,
    sample_rate: int,
    segment: Segment,
    window_samples: int = PITCH_WINDOW_SAMPLES,
    min_lag: int = PITCH_MIN_LAG,
) -> FeatureVector:
    data = _slice(samples, sample_rate, segment.start_time, segment.end_time)
    return FeatureVector(
        energy=compute_energy(data),
        pitch=estimate_pitch(data, sample_rate, window_samples, min_lag),
        zcr=compute_zero_crossing_rate(data),
    )


def extract_all(
    samples: np.ndarray,
    sample_rate: int,
    segments: Iterable[Segment],
    window_samples: int = PITCH_WINDOW_SAMPLES,
    min_lag: int = PITCH_MIN_LAG,
) -> list[FeatureVector]:
    return [extract_features(samples, sample_rate, s, window_samples, min_lag) for s in segments]
