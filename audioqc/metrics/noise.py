"""Noise floor estimation metrics."""
from __future__ import annotations

import logging

import numpy as np

from audioqc.dsp.framing import frame_rms, window_length
from audioqc.metrics.floor import (
    DYNAMIC_THRESHOLD_RATIO,
    SILENCE_FALLBACK_FLOOR_DB,
    dynamic_threshold_db,
)
from audioqc.metrics.silence import SILENCE_WINDOW_SECONDS, channel_window_db, silent_window_masks
from audioqc.types import FloorConfidence, NoiseFloorEstimate

logger = logging.getLogger(__name__)

TENTATIVE_SILENCE_DB = -60.0
HISTOGRAM_BIN_DB = 0.5
HISTOGRAM_RANGE_DB = (-120.0, 0.0)


def tentative_silence_mask(window_db: np.ndarray, threshold_db: float = TENTATIVE_SILENCE_DB) -> np.ndarray:
    """Windows below a fixed conservative level, before any floor is known."""
    return np.asarray(window_db, dtype=np.float64) < float(threshold_db)


def histogram_mode_db(
    values_db: np.ndarray,
    *,
    bin_db: float = HISTOGRAM_BIN_DB,
    range_db: tuple[float, float] = HISTOGRAM_RANGE_DB,
) -> float:
    """
    Center of the most populated histogram bin of dB values.

    Values outside range_db are folded into the edge bins; -inf (digital
    silence) carries no level and is ignored. Ties resolve to the lowest bin.
    """
    values = np.asarray(values_db, dtype=np.float64)
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return float("-inf")
    lo, hi = float(range_db[0]), float(range_db[1])
    n_bins = int(round((hi - lo) / bin_db))
    if n_bins <= 0:
        raise ValueError("Histogram range must span at least one bin.")
    edges = lo + bin_db * np.arange(n_bins + 1, dtype=np.float64)
    clipped = np.clip(finite, lo, hi - 0.5 * bin_db)
    counts, _ = np.histogram(clipped, bins=edges)
    idx = int(np.argmax(counts))
    return float(edges[idx] + 0.5 * bin_db)


def initial_noise_floor_db(
    window_db: list[np.ndarray],
    *,
    tentative_db: float = TENTATIVE_SILENCE_DB,
    bin_db: float = HISTOGRAM_BIN_DB,
    range_db: tuple[float, float] = HISTOGRAM_RANGE_DB,
) -> tuple[float, FloorConfidence]:
    """Coarse floor from tentatively silent windows, or all windows at low confidence."""
    all_db = np.concatenate(window_db) if window_db else np.array([], dtype=np.float64)
    tentative = all_db[tentative_silence_mask(all_db, tentative_db)]
    if tentative.size:
        return histogram_mode_db(tentative, bin_db=bin_db, range_db=range_db), FloorConfidence.NORMAL
    return histogram_mode_db(all_db, bin_db=bin_db, range_db=range_db), FloorConfidence.LOW


def refined_noise_floor_db(
    window_db: list[np.ndarray],
    silent_masks: list[np.ndarray],
    initial_db: float,
    *,
    bin_db: float = HISTOGRAM_BIN_DB,
    range_db: tuple[float, float] = HISTOGRAM_RANGE_DB,
) -> float:
    """Floor from the definitive silent windows; initial_db when none carry a level."""
    selected = [db[mask] for db, mask in zip(window_db, silent_masks)]
    values = np.concatenate(selected) if selected else np.array([], dtype=np.float64)
    refined = histogram_mode_db(values, bin_db=bin_db, range_db=range_db)
    if not np.isfinite(refined):
        return float(initial_db)
    return refined


def estimate_noise_floor(
    samples: np.ndarray,
    fs: float,
    *,
    peak_db: float,
    window_seconds: float = SILENCE_WINDOW_SECONDS,
    tentative_db: float = TENTATIVE_SILENCE_DB,
    bin_db: float = HISTOGRAM_BIN_DB,
    range_db: tuple[float, float] = HISTOGRAM_RANGE_DB,
    fallback_db: float = SILENCE_FALLBACK_FLOOR_DB,
    threshold_ratio: float = DYNAMIC_THRESHOLD_RATIO,
) -> NoiseFloorEstimate:
    """
    Three-pass noise floor estimate.

    1. Window RMS per channel; windows under tentative_db are tentatively silent.
    2. Histogram mode of the tentative windows gives the initial floor (all
       windows at low confidence when nothing is tentatively silent).
    3. Silence detection anchored on the initial floor selects the definitive
       silent windows, whose histogram mode is the final floor.

    Args:
        samples: Mono or (frames, channels) samples
        fs: Sample rate in Hz
        peak_db: Sample peak of the same signal in dBFS

    Returns:
        NoiseFloorEstimate; db is -inf when no window carries a level
    """
    frame_len = window_length(fs, window_seconds)
    window_db = channel_window_db(samples, frame_len)
    initial, confidence = initial_noise_floor_db(
        window_db, tentative_db=tentative_db, bin_db=bin_db, range_db=range_db
    )
    if not np.isfinite(initial):
        return NoiseFloorEstimate(db=float("-inf"), confidence=confidence, initial_db=float("-inf"))

    provisional = NoiseFloorEstimate(db=initial, confidence=confidence, initial_db=initial)
    threshold = dynamic_threshold_db(
        provisional, peak_db, fallback_db=fallback_db, ratio=threshold_ratio
    )
    masks = silent_window_masks(window_db, threshold)
    final = refined_noise_floor_db(window_db, masks, initial, bin_db=bin_db, range_db=range_db)
    logger.debug(
        "noise floor: initial=%.2f dB final=%.2f dB threshold=%.2f dB confidence=%s",
        initial, final, threshold, confidence.value,
    )
    return NoiseFloorEstimate(db=final, confidence=confidence, initial_db=initial)


def quietest_windows_noise_floor_db(
    samples: np.ndarray,
    *,
    window_fraction: float = 0.01,
    quiet_fraction: float = 0.2,
) -> float:
    """
    Deprecated single-pass estimate: mean RMS of the quietest windows.

    Windows are window_fraction of the file long; the quietest quiet_fraction
    of them are averaged. Kept as the baseline the three-pass estimate is
    measured against.
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2 or x.size == 0:
        raise ValueError("Expected non-empty mono or (frames, channels) audio array.")
    frame_len = max(1, int(x.shape[0] * float(window_fraction)))
    rms_vals = np.concatenate(
        [frame_rms(x[:, ch], frame_len, include_partial=False) for ch in range(x.shape[1])]
    )
    if rms_vals.size == 0:
        return float("-inf")
    rms_vals = np.sort(rms_vals)
    count = max(1, int(rms_vals.size * float(quiet_fraction)))
    noise_rms = float(np.mean(rms_vals[:count]))
    if noise_rms <= 0:
        return float("-inf")
    return float(20.0 * np.log10(noise_rms))
