"""Clipping detection metrics."""
from __future__ import annotations

import numpy as np

from audioqc.dsp.framing import runs
from audioqc.types import ClippingRegion, ClippingSummary

FULL_SCALE = 1.0
MIN_CLIPPED_RUN = 3
NEAR_CLIPPING_LEVEL = 0.98


def _as_frames(samples: np.ndarray) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise ValueError("Expected mono or (frames, channels) audio array.")
    if x.size == 0:
        raise ValueError("Expected non-empty audio array.")
    return x


def clipped_runs_mono(x: np.ndarray, *, min_run: int = MIN_CLIPPED_RUN) -> list[tuple[int, int]]:
    """(start, stop) runs of samples sitting exactly at full scale, at least min_run long."""
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError("Expected 1D mono audio array.")
    mask = np.abs(x) == FULL_SCALE
    return [(a, b) for a, b in runs(mask) if b - a >= int(min_run)]


def detect_clipping(
    samples: np.ndarray,
    fs: float,
    *,
    min_run: int = MIN_CLIPPED_RUN,
    near_level: float = NEAR_CLIPPING_LEVEL,
) -> ClippingSummary:
    """
    Detect clipping events: runs of consecutive full-scale samples on one channel.

    Only exact +/-1.0 counts as clipped, and runs shorter than min_run are
    ignored so isolated full-scale samples and dither do not register.
    """
    x = _as_frames(samples)
    if fs <= 0:
        raise ValueError("detect_clipping expects positive sample rate.")
    total = int(x.size)
    regions: list[ClippingRegion] = []
    clipped = 0
    for ch in range(x.shape[1]):
        for a, b in clipped_runs_mono(x[:, ch], min_run=min_run):
            count = b - a
            clipped += count
            regions.append(
                ClippingRegion(
                    start_seconds=float(a / fs),
                    end_seconds=float(b / fs),
                    channel=int(ch),
                    sample_count=int(count),
                )
            )
    regions.sort(key=lambda r: (r.start_seconds, r.channel))
    abs_x = np.abs(x)
    near = int(np.sum((abs_x >= float(near_level)) & (abs_x < FULL_SCALE)))
    return ClippingSummary(
        clipped_sample_count=int(clipped),
        clipped_percentage=float(clipped / total * 100.0),
        near_clipping_percentage=float(near / total * 100.0),
        regions=tuple(regions),
    )
