from __future__ import annotations

import numpy as np

from audioqc.metrics.bleed import analyze_mic_bleed
from audioqc.metrics.levels import peak_db
from audioqc.metrics.overlap import detect_overlap
from audioqc.metrics.stereo import block_correlation, classify_stereo, stereo_blocks
from audioqc.types import BleedMethod, NoiseFloorEstimate, StereoType
from tests.conftest import FS, gated, gaussian_noise, stereo


def _conversation(seconds: int = 8, *, bleed: float = 0.0) -> np.ndarray:
    """Speakers alternate every second; `bleed` leaks each speaker into the other channel."""
    left_speech = gated(gaussian_noise(seconds, -20.0, seed=1), [(t, t + 1) for t in range(0, seconds, 2)])
    right_speech = gated(gaussian_noise(seconds, -20.0, seed=2), [(t, t + 1) for t in range(1, seconds, 2)])
    left = gaussian_noise(seconds, -70.0, seed=3) + left_speech + bleed * right_speech
    right = gaussian_noise(seconds, -70.0, seed=4) + right_speech + bleed * left_speech
    return stereo(left, right)


def test_block_correlation_identical_and_inverted():
    x = gaussian_noise(1.0, -20.0)
    assert np.allclose(block_correlation(stereo(x, x), 12000), 1.0)
    assert np.allclose(block_correlation(stereo(x, -x), 12000), -1.0)
    assert np.allclose(block_correlation(stereo(x, np.zeros_like(x)), 12000), 0.0)


def test_mono_as_stereo():
    x = gaussian_noise(4.0, -20.0)
    sep = classify_stereo(stereo(x, x), FS)
    assert sep.type == StereoType.MONO_AS_STEREO
    assert np.isclose(sep.confidence, 1.0)
    assert sep.balanced_blocks == sep.active_blocks == 16


def test_conversational_stereo():
    sep = classify_stereo(_conversation(), FS)
    assert sep.type == StereoType.CONVERSATIONAL_STEREO
    assert sep.left_dominant_blocks == 16
    assert sep.right_dominant_blocks == 16
    assert 0.0 <= sep.confidence <= 1.0


def test_mono_in_left_and_right():
    x = gaussian_noise(2.0, -20.0)
    silent = np.zeros_like(x)
    assert classify_stereo(stereo(x, silent), FS).type == StereoType.MONO_IN_LEFT
    assert classify_stereo(stereo(silent, x), FS).type == StereoType.MONO_IN_RIGHT


def test_uncorrelated_balanced_is_mixed():
    x = stereo(gaussian_noise(4.0, -20.0, seed=1), gaussian_noise(4.0, -20.0, seed=2))
    assert classify_stereo(x, FS).type == StereoType.MIXED_STEREO


def test_silent_and_undetermined():
    sep = classify_stereo(np.zeros((FS, 2)), FS)
    assert sep.type == StereoType.SILENT
    assert sep.confidence == 1.0
    assert sep.mean_correlation is None

    x = gated(gaussian_noise(1.0, -20.0), [(0.0, 0.25)])
    assert classify_stereo(stereo(x, x), FS).type == StereoType.UNDETERMINED


def test_clean_separation_has_no_bleed():
    bleed = analyze_mic_bleed(_conversation(), FS)
    assert bleed.legacy.method == BleedMethod.LEGACY
    assert bleed.legacy.left_channel_bleed_db < -60.0
    assert bleed.legacy.right_channel_bleed_db < -60.0
    assert not bleed.legacy.detected
    assert bleed.percentage_confirmed.method == BleedMethod.PERCENTAGE_CONFIRMED
    assert bleed.percentage_confirmed.percentage_confirmed_bleed == 0.0
    assert bleed.percentage_confirmed.severity_score == 0.0
    assert not bleed.detected


def test_correlated_leak_is_confirmed_bleed():
    x = _conversation(bleed=0.3)
    blocks = stereo_blocks(x, FS)
    assert classify_stereo(x, FS, blocks=blocks).type == StereoType.CONVERSATIONAL_STEREO
    bleed = analyze_mic_bleed(x, FS, blocks=blocks)
    isolation = -20.0 * np.log10(0.3)
    assert bleed.legacy.detected
    assert np.isclose(bleed.legacy.left_channel_bleed_db, -20.0 - isolation, atol=0.5)
    confirmed = bleed.percentage_confirmed
    assert confirmed.detected
    assert np.isclose(confirmed.percentage_confirmed_bleed, 100.0)
    assert np.isclose(confirmed.left_isolation_db, isolation, atol=0.2)
    assert np.isclose(confirmed.severity_score, 100.0 * (15.0 - isolation) / 15.0, atol=1.0)


def test_overlap_percentage_and_segments():
    left = gaussian_noise(10.0, -70.0, seed=1) + gated(gaussian_noise(10.0, -20.0, seed=2), [(0.0, 4.0)])
    right = gaussian_noise(10.0, -70.0, seed=3) + gated(gaussian_noise(10.0, -20.0, seed=4), [(3.0, 7.0)])
    x = stereo(left, right)
    overlap = detect_overlap(x, FS, NoiseFloorEstimate(db=-70.0), peak_db(x))
    assert np.isclose(overlap.percentage, 10.0)
    assert len(overlap.segments) == 1
    assert np.isclose(overlap.segments[0].start_seconds, 3.0)
    assert np.isclose(overlap.longest_segment_seconds, 1.0)


def test_overlap_threshold_falls_back_without_floor():
    speech = gaussian_noise(2.0, -20.0)
    x = stereo(speech, np.zeros_like(speech))
    peak = peak_db(x)
    overlap = detect_overlap(x, FS, NoiseFloorEstimate(db=float("-inf")), peak)
    assert np.isclose(overlap.threshold_db, -40.0 + 0.25 * (peak + 40.0))
    assert overlap.percentage == 0.0
    assert overlap.segments == ()
    assert overlap.longest_segment_seconds == 0.0
