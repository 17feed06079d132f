"""Fixed-window framing, RMS and run-length helpers."""
from __future__ import annotations

import numpy as np


def window_length(fs: float, seconds: float) -> int:
    """Number of samples in a window of the given duration (at least one)."""
    if fs <= 0:
        raise ValueError("Sample rate must be positive.")
    if seconds <= 0:
        raise ValueError("Window duration must be positive.")
    return max(1, int(round(float(seconds) * float(fs))))


def frame_rms(x: np.ndarray, frame_len: int, *, include_partial: bool = True) -> np.ndarray:
    """
    RMS of consecutive non-overlapping windows of a mono signal.

    Args:
        x: Mono samples (1D array)
        frame_len: Window length in samples
        include_partial: Also return the RMS of a trailing short window

    Returns:
        1D array with one RMS value per window
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError("Expected 1D mono audio array.")
    if frame_len <= 0:
        raise ValueError("frame_len must be positive.")
    n_full = x.size // frame_len
    full = x[: n_full * frame_len].reshape(n_full, frame_len)
    rms = np.sqrt(np.mean(full ** 2, axis=1)) if n_full else np.array([], dtype=np.float64)
    tail = x[n_full * frame_len:]
    if tail.size and (include_partial or n_full == 0):
        rms = np.append(rms, np.sqrt(np.mean(tail ** 2)))
    return rms.astype(np.float64)


def amplitude_to_db(values) -> np.ndarray:
    """Convert linear amplitude to dBFS; zero maps to -inf."""
    arr = np.abs(np.asarray(values, dtype=np.float64))
    with np.errstate(divide="ignore"):
        return 20.0 * np.log10(arr)


def runs(mask: np.ndarray) -> list[tuple[int, int]]:
    """Return (start, stop) index pairs of consecutive True runs, stop exclusive."""
    mask = np.asarray(mask, dtype=bool)
    if mask.size == 0:
        return []
    padded = np.concatenate(([False], mask, [False])).astype(np.int8)
    edges = np.diff(padded)
    starts = np.flatnonzero(edges == 1)
    stops = np.flatnonzero(edges == -1)
    return [(int(a), int(b)) for a, b in zip(starts, stops)]
