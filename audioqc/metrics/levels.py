"""Peak, RMS, normalization and peak-to-loudness metrics."""
from __future__ import annotations

import numpy as np

from audioqc.types import DynamicRange, Normalization, NormalizationState

NORMALIZATION_TARGET_DB = -6.0
NORMALIZATION_TOLERANCE_DB = 0.1
PLR_NATURAL_DB = 12.0
PLR_COMPRESSED_DB = 8.0


def _validate_samples(x: np.ndarray) -> np.ndarray:
    """Validate and coerce (frames,) or (frames, channels) arrays."""
    x = np.asarray(x, dtype=np.float64)
    if x.ndim not in (1, 2):
        raise ValueError("Expected mono or multichannel audio array.")
    if x.size == 0:
        raise ValueError("Expected non-empty audio array.")
    return x


def peak_db(x: np.ndarray) -> float:
    """Sample peak in dBFS over every sample of every channel."""
    x = _validate_samples(x)
    peak = float(np.max(np.abs(x)))
    if peak <= 0:
        return float("-inf")
    return float(20.0 * np.log10(peak))


def rms_db(x: np.ndarray) -> float:
    """RMS level in dBFS over the whole signal, all channels pooled."""
    x = _validate_samples(x)
    rms = float(np.sqrt(np.mean(x ** 2)))
    if rms <= 0:
        return float("-inf")
    return float(20.0 * np.log10(rms))


def check_normalization(
    peak: float,
    *,
    target_db: float = NORMALIZATION_TARGET_DB,
    tolerance_db: float = NORMALIZATION_TOLERANCE_DB,
) -> Normalization:
    """Classify the peak level against the normalization target."""
    peak = float(peak)
    if np.isfinite(peak) and abs(peak - target_db) <= tolerance_db:
        return Normalization(
            status=NormalizationState.NORMALIZED,
            peak_db=peak,
            target_db=float(target_db),
            message=f"Properly normalized to {target_db:g}dB",
        )
    if peak > target_db:
        return Normalization(
            status=NormalizationState.TOO_LOUD,
            peak_db=peak,
            target_db=float(target_db),
            message=f"Too loud: {peak:.1f}dB (target: {target_db:g}dB)",
        )
    shown = "silent" if not np.isfinite(peak) else f"{peak:.1f}dB"
    return Normalization(
        status=NormalizationState.TOO_QUIET,
        peak_db=peak,
        target_db=float(target_db),
        message=f"Too quiet: {shown} (target: {target_db:g}dB)",
    )


def classify_plr(plr: float) -> str:
    if plr > PLR_NATURAL_DB:
        return "Natural"
    if plr > PLR_COMPRESSED_DB:
        return "Possibly Compressed"
    return "Heavily Compressed"


def dynamic_range(x: np.ndarray, peak: float | None = None) -> DynamicRange:
    """
    Peak-to-loudness ratio (crest factor) over the entire file.

    Args:
        x: Samples, mono or (frames, channels)
        peak: Precomputed peak in dBFS, computed from x when omitted

    Returns:
        DynamicRange; plr and label are None for digital silence
    """
    average = rms_db(x)
    peak = peak_db(x) if peak is None else float(peak)
    if not (np.isfinite(average) and np.isfinite(peak)):
        return DynamicRange(average_loudness_db=average, plr=None, label=None)
    plr = float(peak - average)
    return DynamicRange(average_loudness_db=average, plr=plr, label=classify_plr(plr))
