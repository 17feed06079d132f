from __future__ import annotations

import numpy as np

from audioqc.metrics.levels import peak_db
from audioqc.metrics.noise import (
    estimate_noise_floor,
    histogram_mode_db,
    quietest_windows_noise_floor_db,
)
from audioqc.types import FloorConfidence
from tests.conftest import FS, constant_noise, speech_like


def test_histogram_mode_ignores_neg_inf_and_prefers_lowest_tie():
    values = np.array([-np.inf, -40.1, -40.2, -30.1, -30.2])
    assert histogram_mode_db(values) == -40.25
    assert np.isneginf(histogram_mode_db(np.array([-np.inf, -np.inf])))
    # out-of-range values fold into the edge bins
    assert histogram_mode_db(np.array([-200.0])) == -119.75


def test_constant_noise_floor_at_minus_50():
    x = constant_noise(5.0, -50.0)
    floor = estimate_noise_floor(x, FS, peak_db=peak_db(x))
    assert -50.5 <= floor.db <= -49.5
    # nothing is below the tentative silence level
    assert floor.confidence == FloorConfidence.LOW


def test_multi_pass_beats_single_pass_on_speech():
    x = speech_like(20.0, floor_db=-65.0, speech_db=-20.0)
    floor = estimate_noise_floor(x, FS, peak_db=peak_db(x))
    single = quietest_windows_noise_floor_db(x)
    assert floor.confidence == FloorConfidence.NORMAL
    assert abs(floor.db - (-65.0)) <= 1.0
    assert abs(single - (-65.0)) > abs(floor.db - (-65.0)) + 3.0


def test_digital_silence_floor_is_neg_inf():
    x = np.zeros((FS, 2))
    floor = estimate_noise_floor(x, FS, peak_db=peak_db(x))
    assert np.isneginf(floor.db)
    assert not floor.measurable
    assert floor.anchor(-60.0) == -60.0


def test_quietest_windows_on_constant_noise():
    x = constant_noise(2.0, -40.0)
    assert np.isclose(quietest_windows_noise_floor_db(x), -40.0, atol=1e-6)
