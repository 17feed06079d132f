from __future__ import annotations

import numpy as np

from audioqc.metrics.clipping import clipped_runs_mono, detect_clipping
from audioqc.metrics.silence import detect_silence
from audioqc.types import ClippingSeverity
from tests.conftest import FS, sine, stereo


def _padded_tone() -> np.ndarray:
    return np.concatenate([np.zeros(FS), sine(2.0, amp=0.5), np.zeros(FS)])


def test_leading_trailing_and_longest_silence():
    x = _padded_tone()
    summary = detect_silence(x, FS, threshold_db=-46.5)
    assert np.isclose(summary.leading_seconds, 1.0)
    assert np.isclose(summary.trailing_seconds, 1.0)
    assert np.isclose(summary.longest_seconds, 1.0)
    assert len(summary.regions) == 2
    assert [r.channel for r in summary.regions] == [0, 0]
    # sin(0) is the one exact zero inside the tone
    assert np.isclose(summary.digital_silence_percentage, 50.0, atol=0.01)


def test_silence_on_one_channel_only_is_not_leading():
    left = _padded_tone()
    right = sine(4.0, amp=0.5)
    summary = detect_silence(stereo(left, right), FS, threshold_db=-46.5)
    assert summary.leading_seconds == 0.0
    assert summary.trailing_seconds == 0.0
    assert {r.channel for r in summary.regions} == {0}
    assert summary.digital_silence_percentage < 0.01


def test_silence_min_duration_drops_short_regions():
    x = np.concatenate([sine(1.0), np.zeros(int(0.1 * FS)), sine(1.0)])
    assert len(detect_silence(x, FS, threshold_db=-46.5).regions) == 1
    assert detect_silence(x, FS, threshold_db=-46.5, min_duration_seconds=0.2).regions == ()


def test_two_full_scale_samples_are_not_clipping():
    x = np.full(1000, 0.5)
    x[100:102] = 1.0
    summary = detect_clipping(x, FS)
    assert summary.event_count == 0
    assert summary.clipped_sample_count == 0
    assert summary.severity == ClippingSeverity.NONE


def test_three_full_scale_samples_are_one_event():
    x = np.full(1000, 0.5)
    x[100:103] = -1.0
    summary = detect_clipping(x, FS)
    assert summary.event_count == 1
    region = summary.regions[0]
    assert region.sample_count == 3
    assert region.channel == 0
    assert np.isclose(region.start_seconds, 100 / FS)
    assert np.isclose(summary.clipped_percentage, 0.3)
    assert summary.severity == ClippingSeverity.WARNING


def test_clipping_severity_bands():
    x = np.full(FS, 0.5)
    x[10:13] = 1.0
    assert detect_clipping(x, FS).severity == ClippingSeverity.INFO
    y = np.full(1000, 0.5)
    y[0:20] = 1.0
    assert detect_clipping(y, FS).severity == ClippingSeverity.FAIL


def test_clipping_per_channel_and_near_clipping():
    left = np.full(100, 0.5)
    right = np.full(100, 0.5)
    right[50:54] = 1.0
    left[0:4] = 0.99
    summary = detect_clipping(stereo(left, right), FS)
    assert [r.channel for r in summary.regions] == [1]
    assert np.isclose(summary.near_clipping_percentage, 4 / 200 * 100)
    assert clipped_runs_mono(right, min_run=5) == []
