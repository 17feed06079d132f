"""Level and quality analysis of one decoded sample buffer."""
from __future__ import annotations

import logging

from audioqc.metrics.bleed import analyze_mic_bleed
from audioqc.metrics.clipping import MIN_CLIPPED_RUN, NEAR_CLIPPING_LEVEL, detect_clipping
from audioqc.metrics.floor import (
    DYNAMIC_THRESHOLD_RATIO,
    REVERB_FALLBACK_FLOOR_DB,
    SILENCE_FALLBACK_FLOOR_DB,
    SPEECH_FALLBACK_FLOOR_DB,
    dynamic_threshold_db,
)
from audioqc.metrics.levels import (
    NORMALIZATION_TARGET_DB,
    NORMALIZATION_TOLERANCE_DB,
    check_normalization,
    dynamic_range,
    peak_db,
)
from audioqc.metrics.noise import (
    HISTOGRAM_BIN_DB,
    TENTATIVE_SILENCE_DB,
    estimate_noise_floor,
)
from audioqc.metrics.overlap import detect_overlap
from audioqc.metrics.reverb import ENVELOPE_WINDOW_SECONDS, estimate_reverb
from audioqc.metrics.silence import SILENCE_WINDOW_SECONDS, detect_silence
from audioqc.metrics.stereo import (
    BLOCK_SECONDS,
    BLOCK_SILENCE_RMS,
    DOMINANCE_RATIO,
    classify_stereo,
    stereo_blocks,
)
from audioqc.types import FloorConfidence, LevelMetrics, NoiseFloorEstimate, SampleBuffer

logger = logging.getLogger(__name__)

MIN_ANALYSIS_SECONDS = 0.2

DEFAULT_ANALYSIS_CONFIG = {
    "min_duration_seconds": MIN_ANALYSIS_SECONDS,
    "normalization": {
        "target_db": NORMALIZATION_TARGET_DB,
        "tolerance_db": NORMALIZATION_TOLERANCE_DB,
    },
    "noise_floor": {
        "window_seconds": SILENCE_WINDOW_SECONDS,
        "tentative_db": TENTATIVE_SILENCE_DB,
        "bin_db": HISTOGRAM_BIN_DB,
    },
    "threshold_ratio": DYNAMIC_THRESHOLD_RATIO,
    "silence": {
        "window_seconds": SILENCE_WINDOW_SECONDS,
        "fallback_floor_db": SILENCE_FALLBACK_FLOOR_DB,
        "min_duration_seconds": 0.0,
    },
    "reverb": {
        "window_seconds": ENVELOPE_WINDOW_SECONDS,
        "fallback_floor_db": REVERB_FALLBACK_FLOOR_DB,
    },
    "clipping": {
        "min_run": MIN_CLIPPED_RUN,
        "near_level": NEAR_CLIPPING_LEVEL,
    },
    "stereo": {
        "block_seconds": BLOCK_SECONDS,
        "dominance_ratio": DOMINANCE_RATIO,
        "silence_rms": BLOCK_SILENCE_RMS,
    },
    "overlap": {
        "window_seconds": SILENCE_WINDOW_SECONDS,
        "fallback_floor_db": SPEECH_FALLBACK_FLOOR_DB,
    },
}


def _merge_config(base: dict, overrides: dict | None) -> dict:
    if not overrides:
        return base
    merged = {**base}
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge_config(base[key], value)
        else:
            merged[key] = value
    return merged


def build_analysis_config(overrides: dict | None = None) -> dict:
    """Return merged analysis configuration with defaults applied."""
    return _merge_config(DEFAULT_ANALYSIS_CONFIG, overrides)


def analyze(buffer: SampleBuffer, *, config: dict | None = None) -> LevelMetrics:
    """
    Derive level and quality metrics from a decoded buffer.

    Deterministic and free of I/O. Buffers shorter than the minimum analysis
    duration carry -inf levels and no derived metrics; silent or near-silent
    input yields defined values rather than errors. Stereo classification,
    mic bleed and speech overlap are computed for two-channel buffers only.

    Args:
        buffer: Decoded samples in [-1, 1]
        config: Overrides merged onto DEFAULT_ANALYSIS_CONFIG

    Returns:
        LevelMetrics
    """
    cfg = build_analysis_config(config)
    x = buffer.samples
    fs = buffer.sample_rate

    if buffer.duration_seconds < float(cfg["min_duration_seconds"]):
        logger.debug(
            "buffer too short for analysis: %.3f s < %.3f s",
            buffer.duration_seconds, cfg["min_duration_seconds"],
        )
        return LevelMetrics(
            sample_rate=fs,
            channel_count=buffer.channel_count,
            duration_seconds=buffer.duration_seconds,
            peak_db=float("-inf"),
            noise_floor=NoiseFloorEstimate(db=float("-inf"), confidence=FloorConfidence.LOW),
        )

    ratio = float(cfg["threshold_ratio"])
    peak = peak_db(x)
    norm_cfg = cfg["normalization"]
    normalization = check_normalization(
        peak, target_db=float(norm_cfg["target_db"]), tolerance_db=float(norm_cfg["tolerance_db"])
    )

    nf_cfg = cfg["noise_floor"]
    floor = estimate_noise_floor(
        x,
        fs,
        peak_db=peak,
        window_seconds=float(nf_cfg["window_seconds"]),
        tentative_db=float(nf_cfg["tentative_db"]),
        bin_db=float(nf_cfg["bin_db"]),
        fallback_db=float(cfg["silence"]["fallback_floor_db"]),
        threshold_ratio=ratio,
    )

    sil_cfg = cfg["silence"]
    silence_threshold = dynamic_threshold_db(
        floor, peak, fallback_db=float(sil_cfg["fallback_floor_db"]), ratio=ratio
    )
    silence = detect_silence(
        x,
        fs,
        threshold_db=silence_threshold,
        window_seconds=float(sil_cfg["window_seconds"]),
        min_duration_seconds=float(sil_cfg["min_duration_seconds"]),
    )

    rev_cfg = cfg["reverb"]
    reverb = estimate_reverb(
        x,
        fs,
        floor,
        window_seconds=float(rev_cfg["window_seconds"]),
        fallback_db=float(rev_cfg["fallback_floor_db"]),
    )

    clip_cfg = cfg["clipping"]
    clipping = detect_clipping(
        x, fs, min_run=int(clip_cfg["min_run"]), near_level=float(clip_cfg["near_level"])
    )

    stereo = None
    mic_bleed = None
    overlap = None
    if buffer.channel_count == 2:
        st_cfg = cfg["stereo"]
        blocks = stereo_blocks(
            x,
            fs,
            block_seconds=float(st_cfg["block_seconds"]),
            dominance_ratio=float(st_cfg["dominance_ratio"]),
            silence_rms=float(st_cfg["silence_rms"]),
        )
        stereo = classify_stereo(x, fs, blocks=blocks)
        mic_bleed = analyze_mic_bleed(x, fs, blocks=blocks)
        ov_cfg = cfg["overlap"]
        overlap = detect_overlap(
            x,
            fs,
            floor,
            peak,
            window_seconds=float(ov_cfg["window_seconds"]),
            fallback_db=float(ov_cfg["fallback_floor_db"]),
            threshold_ratio=ratio,
        )

    metrics = LevelMetrics(
        sample_rate=fs,
        channel_count=buffer.channel_count,
        duration_seconds=buffer.duration_seconds,
        peak_db=peak,
        noise_floor=floor,
        normalization=normalization,
        reverb=reverb,
        silence=silence,
        clipping=clipping,
        stereo=stereo,
        mic_bleed=mic_bleed,
        overlap=overlap,
        dynamic_range=dynamic_range(x, peak),
    )
    logger.debug(
        "analysis: peak=%.2f dB floor=%.2f dB stereo=%s",
        peak,
        floor.db,
        stereo.type.value if stereo else "n/a",
    )
    return metrics
