"""Reverberation (RT60) estimation from transient decays."""
from __future__ import annotations

import numpy as np

from audioqc.dsp.framing import frame_rms, window_length
from audioqc.metrics.floor import REVERB_FALLBACK_FLOOR_DB
from audioqc.types import NoiseFloorEstimate, ReverbEstimate

ENVELOPE_WINDOW_SECONDS = 0.01
SIGNIFICANT_OFFSET_DB = 10.0
PEAK_NEIGHBORHOOD_SECONDS = 0.05
DECAY_START_DB = 5.0
FLOOR_REACH_DB = 3.0
MIN_DECAY_RANGE_DB = 10.0
ONSET_RISE_DB = 6.0
MAX_DECAY_SECONDS = 3.0
RT60_BANDS = ((0.3, "Excellent"), (0.5, "Good"), (0.8, "Fair"))
RT60_WORST_LABEL = "Poor"


def envelope_db(samples: np.ndarray, fs: float, *, window_seconds: float = ENVELOPE_WINDOW_SECONDS) -> np.ndarray:
    """Short-window level in dBFS, power averaged across channels."""
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    frame_len = window_length(fs, window_seconds)
    power = np.mean(
        np.stack([frame_rms(x[:, ch], frame_len) ** 2 for ch in range(x.shape[1])], axis=0),
        axis=0,
    )
    with np.errstate(divide="ignore"):
        return 10.0 * np.log10(power)


def find_transient_peaks(env_db: np.ndarray, significant_db: float, neighborhood: int) -> list[int]:
    """Indices that exceed significant_db and are the first maximum of their neighborhood."""
    env = np.asarray(env_db, dtype=np.float64)
    if env.size == 0:
        return []
    k = max(1, int(neighborhood))
    padded = np.concatenate((np.full(k, -np.inf), env, np.full(k, -np.inf)))
    local_max = np.max(np.lib.stride_tricks.sliding_window_view(padded, 2 * k + 1), axis=1)
    previous = np.concatenate(([-np.inf], env[:-1]))
    is_peak = (env > float(significant_db)) & (env >= local_max) & (env > previous)
    return [int(i) for i in np.flatnonzero(is_peak)]


def decay_rt60(
    env_db: np.ndarray,
    peak_index: int,
    floor_db: float,
    window_seconds: float,
    *,
    max_windows: int,
) -> float | None:
    """
    RT60 extrapolated from the decay that follows one transient peak.

    The decay is timed from the first window DECAY_START_DB under the peak to
    the first window within FLOOR_REACH_DB of the floor. A renewed onset
    before the floor is reached discards the transient.
    """
    env = np.asarray(env_db, dtype=np.float64)
    peak = float(env[peak_index])
    target = float(floor_db) + FLOOR_REACH_DB
    if peak - target < MIN_DECAY_RANGE_DB:
        return None
    stop = min(env.size, peak_index + 1 + int(max_windows))
    running_min = peak
    start_index = None
    start_level = peak
    for j in range(peak_index + 1, stop):
        level = float(env[j])
        if level > running_min + ONSET_RISE_DB:
            return None
        running_min = min(running_min, level)
        if start_index is None and level <= peak - DECAY_START_DB:
            start_index = j
            start_level = max(level, target)
        if start_index is not None and level <= target:
            end_level = max(level, target)
            drop = start_level - end_level
            elapsed = (j - start_index) * window_seconds
            if drop < MIN_DECAY_RANGE_DB:
                # the whole decay fell inside one window
                drop = peak - end_level
                elapsed = (j - peak_index) * window_seconds
            return float(60.0 * elapsed / drop)
    return None


def rt60_label(rt60_seconds: float) -> str:
    for limit, label in RT60_BANDS:
        if rt60_seconds <= limit:
            return label
    return RT60_WORST_LABEL


def estimate_reverb(
    samples: np.ndarray,
    fs: float,
    floor: NoiseFloorEstimate,
    *,
    window_seconds: float = ENVELOPE_WINDOW_SECONDS,
    fallback_db: float = REVERB_FALLBACK_FLOOR_DB,
) -> ReverbEstimate | None:
    """Median RT60 over detected transients; None when no transient decays to the floor."""
    if fs <= 0:
        raise ValueError("estimate_reverb expects positive sample rate.")
    anchor = floor.anchor(fallback_db)
    env = envelope_db(samples, fs, window_seconds=window_seconds)
    neighborhood = int(round(PEAK_NEIGHBORHOOD_SECONDS / window_seconds))
    max_windows = int(round(MAX_DECAY_SECONDS / window_seconds))
    estimates = []
    for idx in find_transient_peaks(env, anchor + SIGNIFICANT_OFFSET_DB, neighborhood):
        rt60 = decay_rt60(env, idx, anchor, window_seconds, max_windows=max_windows)
        if rt60 is not None:
            estimates.append(rt60)
    if not estimates:
        return None
    rt60 = float(np.median(np.asarray(estimates, dtype=np.float64)))
    return ReverbEstimate(rt60_seconds=rt60, label=rt60_label(rt60), transient_count=len(estimates))
