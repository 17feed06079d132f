"""Microphone bleed between the two channels of a stereo recording.

Two scoring strategies are reported side by side because they do not always
agree: the legacy one looks at the absolute level a channel carries while the
other channel is speaking, the percentage-confirmed one looks at per-block
isolation and only counts blocks whose content correlates across channels.
"""
from __future__ import annotations

import numpy as np

from audioqc.dsp.framing import amplitude_to_db
from audioqc.metrics.stereo import StereoBlocks, stereo_blocks
from audioqc.types import ConfirmedBleed, LegacyBleed, MicBleed

LEGACY_BLEED_THRESHOLD_DB = -60.0
SEPARATION_THRESHOLD_DB = 15.0
BLEED_CORRELATION = 0.3
CONFIRMED_DETECTION_PCT = 0.5


def _median_db(levels: np.ndarray) -> float:
    if levels.size == 0:
        return float("-inf")
    return float(np.median(amplitude_to_db(levels)))


def legacy_bleed(blocks: StereoBlocks) -> LegacyBleed:
    """Median level of each channel while the opposite channel dominates."""
    left_db = _median_db(blocks.left_rms[blocks.right_dominant])
    right_db = _median_db(blocks.right_rms[blocks.left_dominant])
    detected = left_db > LEGACY_BLEED_THRESHOLD_DB or right_db > LEGACY_BLEED_THRESHOLD_DB
    return LegacyBleed(
        left_channel_bleed_db=left_db,
        right_channel_bleed_db=right_db,
        detected=bool(detected),
    )


def confirmed_bleed(blocks: StereoBlocks) -> ConfirmedBleed:
    """Share of dominant blocks with weak isolation confirmed by cross-channel correlation."""
    with np.errstate(invalid="ignore"):
        left_iso = amplitude_to_db(blocks.left_rms) - amplitude_to_db(blocks.right_rms)
    # isolation of the dominant channel over the other, per block
    isolation = np.where(blocks.left_dominant, left_iso, -left_iso)
    dominant = blocks.left_dominant | blocks.right_dominant

    left_values = isolation[blocks.left_dominant]
    right_values = isolation[blocks.right_dominant]
    left_median = float(np.median(left_values)) if left_values.size else None
    right_median = float(np.median(right_values)) if right_values.size else None

    confirmed = dominant & (isolation < SEPARATION_THRESHOLD_DB) & (blocks.correlation > BLEED_CORRELATION)
    n_dominant = int(np.sum(dominant))
    n_confirmed = int(np.sum(confirmed))
    percentage = float(n_confirmed / n_dominant * 100.0) if n_dominant else 0.0
    severity = 0.0
    if n_confirmed:
        shortfall = np.clip(
            (SEPARATION_THRESHOLD_DB - isolation[confirmed]) / SEPARATION_THRESHOLD_DB, 0.0, 1.0
        )
        severity = float(percentage * np.mean(shortfall))
    return ConfirmedBleed(
        left_isolation_db=left_median,
        right_isolation_db=right_median,
        percentage_confirmed_bleed=percentage,
        severity_score=severity,
        detected=percentage > CONFIRMED_DETECTION_PCT,
    )


def analyze_mic_bleed(
    samples: np.ndarray,
    fs: float,
    *,
    blocks: StereoBlocks | None = None,
) -> MicBleed:
    """Run both bleed strategies over the same stereo blocks."""
    if blocks is None:
        blocks = stereo_blocks(samples, fs)
    return MicBleed(legacy=legacy_bleed(blocks), percentage_confirmed=confirmed_bleed(blocks))
