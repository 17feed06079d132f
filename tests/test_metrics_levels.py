from __future__ import annotations

import numpy as np

from audioqc.metrics.floor import dynamic_threshold_db
from audioqc.metrics.levels import check_normalization, dynamic_range, peak_db, rms_db
from audioqc.types import FloorConfidence, NoiseFloorEstimate, NormalizationState


def test_peak_db_over_all_channels():
    x = np.array([[0.1, -0.5], [0.2, 0.05]])
    assert np.isclose(peak_db(x), 20.0 * np.log10(0.5))
    assert np.isneginf(peak_db(np.zeros(100)))
    assert np.isneginf(rms_db(np.zeros(100)))


def test_check_normalization_states():
    assert check_normalization(-6.05).status == NormalizationState.NORMALIZED
    assert check_normalization(-3.0).status == NormalizationState.TOO_LOUD
    quiet = check_normalization(-12.0)
    assert quiet.status == NormalizationState.TOO_QUIET
    assert "-12.0dB" in quiet.message
    silent = check_normalization(float("-inf"))
    assert silent.status == NormalizationState.TOO_QUIET
    assert "silent" in silent.message


def test_dynamic_range_labels():
    full_sine = np.sin(np.linspace(0.0, 200.0 * np.pi, 48000))
    dr = dynamic_range(full_sine)
    assert np.isclose(dr.plr, 3.01, atol=0.05)
    assert dr.label == "Heavily Compressed"

    sparse = np.zeros(48000)
    sparse[100] = 1.0
    assert dynamic_range(sparse).label == "Natural"

    silent = dynamic_range(np.zeros(100))
    assert silent.plr is None
    assert silent.label is None


def test_dynamic_threshold_uses_fallback_for_unmeasurable_floor():
    unmeasured = NoiseFloorEstimate(db=float("-inf"), confidence=FloorConfidence.LOW)
    assert dynamic_threshold_db(unmeasured, -6.0, fallback_db=-60.0) == -60.0 + 0.25 * 54.0
    assert dynamic_threshold_db(unmeasured, float("-inf"), fallback_db=-40.0) == -40.0
    measured = NoiseFloorEstimate(db=-70.0)
    assert dynamic_threshold_db(measured, -10.0, fallback_db=-60.0) == -55.0
    assert dynamic_threshold_db(measured, -80.0, fallback_db=-60.0) == -70.0
