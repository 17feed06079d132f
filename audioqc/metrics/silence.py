"""Silence detection metrics."""
from __future__ import annotations

import numpy as np

from audioqc.dsp.framing import amplitude_to_db, frame_rms, runs, window_length
from audioqc.types import SilenceRegion, SilenceSummary

SILENCE_WINDOW_SECONDS = 0.02


def _as_frames(samples: np.ndarray) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise ValueError("Expected mono or (frames, channels) audio array.")
    if x.size == 0:
        raise ValueError("Expected non-empty audio array.")
    return x


def channel_window_db(samples: np.ndarray, frame_len: int) -> list[np.ndarray]:
    """Window RMS in dBFS for each channel, trailing short window included."""
    x = _as_frames(samples)
    return [amplitude_to_db(frame_rms(x[:, ch], frame_len)) for ch in range(x.shape[1])]


def silent_window_masks(window_db: list[np.ndarray], threshold_db: float) -> list[np.ndarray]:
    """Mark windows strictly below threshold_db; digital silence is always below."""
    return [np.asarray(db < float(threshold_db), dtype=bool) for db in window_db]


def detect_silence(
    samples: np.ndarray,
    fs: float,
    *,
    threshold_db: float,
    window_seconds: float = SILENCE_WINDOW_SECONDS,
    min_duration_seconds: float = 0.0,
) -> SilenceSummary:
    """
    Detect silent regions using fixed windows against a level threshold.

    Consecutive silent windows on one channel merge into one region. Leading,
    trailing and longest silence are measured where every channel is silent.
    """
    x = _as_frames(samples)
    if fs <= 0:
        raise ValueError("detect_silence expects positive sample rate.")
    n = x.shape[0]
    frame_len = window_length(fs, window_seconds)
    masks = silent_window_masks(channel_window_db(x, frame_len), threshold_db)
    n_windows = masks[0].size
    min_duration_seconds = max(0.0, float(min_duration_seconds))

    def _span(start_win: int, stop_win: int) -> tuple[float, float]:
        start_s = start_win * frame_len / float(fs)
        end_s = min(stop_win * frame_len, n) / float(fs)
        return float(start_s), float(end_s)

    regions: list[SilenceRegion] = []
    for ch, mask in enumerate(masks):
        for a, b in runs(mask):
            start_s, end_s = _span(a, b)
            if end_s - start_s >= min_duration_seconds:
                regions.append(SilenceRegion(start_seconds=start_s, end_seconds=end_s, channel=ch))
    regions.sort(key=lambda r: (r.start_seconds, r.channel))

    combined = np.logical_and.reduce(masks)
    combined_runs = [
        (a, b) for a, b in runs(combined)
        if _span(a, b)[1] - _span(a, b)[0] >= min_duration_seconds
    ]
    leading = 0.0
    trailing = 0.0
    longest = 0.0
    if combined_runs:
        first_a, first_b = combined_runs[0]
        if first_a == 0:
            start_s, end_s = _span(first_a, first_b)
            leading = end_s - start_s
        last_a, last_b = combined_runs[-1]
        if last_b == n_windows:
            start_s, end_s = _span(last_a, last_b)
            trailing = end_s - start_s
        longest = max(_span(a, b)[1] - _span(a, b)[0] for a, b in combined_runs)

    digital = float(np.mean(np.all(x == 0.0, axis=1)) * 100.0)
    return SilenceSummary(
        leading_seconds=float(leading),
        trailing_seconds=float(trailing),
        longest_seconds=float(longest),
        threshold_db=float(threshold_db),
        digital_silence_percentage=digital,
        regions=tuple(regions),
    )
