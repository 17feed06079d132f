"""DSP helpers shared by the metric modules."""

from audioqc.dsp.framing import (
    amplitude_to_db,
    frame_rms,
    runs,
    window_length,
)

__all__ = [
    "amplitude_to_db",
    "frame_rms",
    "runs",
    "window_length",
]
