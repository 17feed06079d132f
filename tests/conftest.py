from __future__ import annotations

import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

FS = 48000


def db_to_amp(db: float) -> float:
    return float(10.0 ** (db / 20.0))


def constant_noise(seconds: float, level_db: float, *, fs: int = FS, seed: int = 0) -> np.ndarray:
    """Random +/-a samples: every window has an RMS of exactly level_db."""
    rng = np.random.default_rng(seed)
    n = int(round(seconds * fs))
    return db_to_amp(level_db) * rng.choice([-1.0, 1.0], size=n)


def gaussian_noise(seconds: float, level_db: float, *, fs: int = FS, seed: int = 0) -> np.ndarray:
    """Gaussian noise with an RMS of level_db."""
    rng = np.random.default_rng(seed)
    n = int(round(seconds * fs))
    return db_to_amp(level_db) * rng.standard_normal(n)


def sine(seconds: float, *, freq: float = 440.0, amp: float = 0.5, fs: int = FS) -> np.ndarray:
    t = np.arange(int(round(seconds * fs)), dtype=np.float64) / fs
    return amp * np.sin(2.0 * np.pi * freq * t)


def gated(noise: np.ndarray, spans: list[tuple[float, float]], *, fs: int = FS) -> np.ndarray:
    """Keep noise only inside the (start, end) second spans."""
    out = np.zeros_like(noise)
    for start, end in spans:
        a, b = int(round(start * fs)), int(round(end * fs))
        out[a:b] = noise[a:b]
    return out


def speech_like(
    seconds: float,
    *,
    floor_db: float = -65.0,
    speech_db: float = -20.0,
    cycle_seconds: float = 2.0,
    gap_seconds: float = 0.3,
    fs: int = FS,
    seed: int = 0,
) -> np.ndarray:
    """Speech-level bursts with short pauses over a continuous noise floor."""
    floor = gaussian_noise(seconds, floor_db, fs=fs, seed=seed)
    speech = gaussian_noise(seconds, speech_db, fs=fs, seed=seed + 1)
    n_cycles = int(seconds // cycle_seconds)
    spans = [(i * cycle_seconds, (i + 1) * cycle_seconds - gap_seconds) for i in range(n_cycles)]
    return floor + gated(speech, spans, fs=fs)


def stereo(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    return np.stack([left, right], axis=1)
