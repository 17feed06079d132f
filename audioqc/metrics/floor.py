"""Noise-floor anchored thresholds with per-feature fallbacks."""
from __future__ import annotations

import numpy as np

from audioqc.types import NoiseFloorEstimate

SILENCE_FALLBACK_FLOOR_DB = -60.0
REVERB_FALLBACK_FLOOR_DB = -50.0
SPEECH_FALLBACK_FLOOR_DB = -40.0
DYNAMIC_THRESHOLD_RATIO = 0.25


def dynamic_threshold_db(
    floor: NoiseFloorEstimate,
    peak_db: float,
    *,
    fallback_db: float,
    ratio: float = DYNAMIC_THRESHOLD_RATIO,
) -> float:
    """
    Threshold a fraction of the way from the noise floor up to the peak.

    An unmeasurable floor is replaced by fallback_db before any arithmetic, and
    a peak at or below the anchor leaves the threshold on the anchor.
    """
    anchor = floor.anchor(fallback_db)
    peak_db = float(peak_db)
    if not np.isfinite(peak_db) or peak_db <= anchor:
        return anchor
    return float(anchor + ratio * (peak_db - anchor))
