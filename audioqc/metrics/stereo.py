"""Stereo separation metrics: block energy, correlation and stereo type."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from audioqc.dsp.framing import frame_rms, window_length
from audioqc.types import StereoSeparation, StereoType

BLOCK_SECONDS = 0.25
DOMINANCE_RATIO = 1.1
BLOCK_SILENCE_RMS = 0.001
MONO_CORRELATION = 0.8
MIN_ACTIVE_BLOCKS = 2


@dataclass(frozen=True, eq=False)
class StereoBlocks:
    """Per-block levels and correlation for a stereo signal."""
    left_rms: np.ndarray
    right_rms: np.ndarray
    correlation: np.ndarray
    active: np.ndarray
    left_dominant: np.ndarray
    right_dominant: np.ndarray

    @property
    def balanced(self) -> np.ndarray:
        return self.active & ~self.left_dominant & ~self.right_dominant


def _validate_stereo(samples: np.ndarray) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 2 or x.shape[1] != 2:
        raise ValueError("Expected stereo samples with shape (n, 2).")
    if x.size == 0:
        raise ValueError("Expected non-empty audio array.")
    return x


def _pearson(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    left_centered = left - np.mean(left, axis=-1, keepdims=True)
    right_centered = right - np.mean(right, axis=-1, keepdims=True)
    numerator = np.sum(left_centered * right_centered, axis=-1)
    denom = np.sqrt(
        np.sum(left_centered ** 2, axis=-1) * np.sum(right_centered ** 2, axis=-1)
    )
    return np.divide(
        numerator,
        denom,
        out=np.zeros_like(numerator, dtype=np.float64),
        where=denom > 0,
    )


def block_correlation(samples: np.ndarray, frame_len: int) -> np.ndarray:
    """Pearson correlation between channels for consecutive blocks (0 where undefined)."""
    x = _validate_stereo(samples)
    n_full = x.shape[0] // frame_len
    full = x[: n_full * frame_len]
    corr = _pearson(
        full[:, 0].reshape(n_full, frame_len),
        full[:, 1].reshape(n_full, frame_len),
    ) if n_full else np.array([], dtype=np.float64)
    tail = x[n_full * frame_len:]
    if tail.shape[0]:
        corr = np.append(corr, _pearson(tail[:, 0], tail[:, 1]))
    return corr.astype(np.float64)


def stereo_blocks(
    samples: np.ndarray,
    fs: float,
    *,
    block_seconds: float = BLOCK_SECONDS,
    dominance_ratio: float = DOMINANCE_RATIO,
    silence_rms: float = BLOCK_SILENCE_RMS,
) -> StereoBlocks:
    """Split a stereo signal into blocks and mark activity and channel dominance."""
    x = _validate_stereo(samples)
    frame_len = window_length(fs, block_seconds)
    left = frame_rms(x[:, 0], frame_len)
    right = frame_rms(x[:, 1], frame_len)
    active = ~((left < silence_rms) & (right < silence_rms))
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(right > 0, left / np.where(right > 0, right, 1.0), np.inf)
    return StereoBlocks(
        left_rms=left,
        right_rms=right,
        correlation=block_correlation(x, frame_len),
        active=active,
        left_dominant=active & (ratio > dominance_ratio),
        right_dominant=active & (ratio < 1.0 / dominance_ratio),
    )


def classify_stereo(
    samples: np.ndarray,
    fs: float,
    *,
    blocks: StereoBlocks | None = None,
) -> StereoSeparation:
    """
    Classify how content is distributed across the two channels.

    Balanced, highly correlated blocks indicate duplicated mono; blocks that
    alternate between left and right dominance indicate a two-speaker
    conversation recorded on separate channels.
    """
    if blocks is None:
        blocks = stereo_blocks(samples, fs)
    total = int(blocks.active.size)
    active = int(np.sum(blocks.active))
    left_count = int(np.sum(blocks.left_dominant))
    right_count = int(np.sum(blocks.right_dominant))
    balanced_count = int(np.sum(blocks.balanced))
    mean_corr = float(np.mean(blocks.correlation[blocks.active])) if active else None

    def _result(stereo_type: StereoType, confidence: float) -> StereoSeparation:
        return StereoSeparation(
            type=stereo_type,
            confidence=float(min(max(confidence, 0.0), 1.0)),
            total_blocks=total,
            active_blocks=active,
            left_dominant_blocks=left_count,
            right_dominant_blocks=right_count,
            balanced_blocks=balanced_count,
            mean_correlation=mean_corr,
        )

    if active == 0:
        return _result(StereoType.SILENT, 1.0)
    if active < MIN_ACTIVE_BLOCKS:
        return _result(StereoType.UNDETERMINED, active / total if total else 0.0)

    balanced_pct = balanced_count / active
    left_pct = left_count / active
    right_pct = right_count / active

    if balanced_pct > 0.9:
        balanced_corr = float(np.mean(blocks.correlation[blocks.balanced]))
        if balanced_corr >= MONO_CORRELATION:
            return _result(StereoType.MONO_AS_STEREO, balanced_pct)
        return _result(StereoType.MIXED_STEREO, 1.0 - balanced_corr)
    if left_pct > 0.1 and right_pct > 0.1:
        return _result(StereoType.CONVERSATIONAL_STEREO, left_pct + right_pct)
    if left_pct > 0.9:
        return _result(StereoType.MONO_IN_LEFT, left_pct)
    if right_pct > 0.9:
        return _result(StereoType.MONO_IN_RIGHT, right_pct)
    return _result(StereoType.MIXED_STEREO, 1.0 - balanced_pct)
