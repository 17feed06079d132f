"""Speech overlap between the two channels of a conversational recording."""
from __future__ import annotations

import numpy as np

from audioqc.dsp.framing import runs, window_length
from audioqc.metrics.floor import DYNAMIC_THRESHOLD_RATIO, SPEECH_FALLBACK_FLOOR_DB, dynamic_threshold_db
from audioqc.metrics.silence import SILENCE_WINDOW_SECONDS, channel_window_db
from audioqc.types import NoiseFloorEstimate, OverlapSegment, SpeechOverlap


def detect_overlap(
    samples: np.ndarray,
    fs: float,
    floor: NoiseFloorEstimate,
    peak_db: float,
    *,
    window_seconds: float = SILENCE_WINDOW_SECONDS,
    fallback_db: float = SPEECH_FALLBACK_FLOOR_DB,
    threshold_ratio: float = DYNAMIC_THRESHOLD_RATIO,
) -> SpeechOverlap:
    """
    Share of windows where both channels carry speech at the same time.

    Activity uses the same floor-anchored threshold as silence detection,
    with its own fallback when the floor is unmeasurable. Consecutive
    overlapping windows merge into segments.
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 2 or x.shape[1] != 2:
        raise ValueError("detect_overlap expects stereo samples with shape (n, 2).")
    if fs <= 0:
        raise ValueError("detect_overlap expects positive sample rate.")
    threshold = dynamic_threshold_db(floor, peak_db, fallback_db=fallback_db, ratio=threshold_ratio)
    frame_len = window_length(fs, window_seconds)
    left_db, right_db = channel_window_db(x, frame_len)
    both = (left_db > threshold) & (right_db > threshold)
    n_windows = both.size
    percentage = float(np.sum(both) / n_windows * 100.0) if n_windows else 0.0
    n = x.shape[0]
    segments = tuple(
        OverlapSegment(
            start_seconds=float(a * frame_len / fs),
            duration_seconds=float((min(b * frame_len, n) - a * frame_len) / fs),
        )
        for a, b in runs(both)
    )
    return SpeechOverlap(percentage=percentage, threshold_db=float(threshold), segments=segments)
