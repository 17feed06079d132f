"""Audio I/O module."""
from __future__ import annotations
import os

import numpy as np
import soundfile as sf

from audioqc.errors import DecodeError
from audioqc.types import AudioProperties, SampleBuffer

SUPPORTED_AUDIO_EXTS = {".wav", ".flac", ".aiff", ".aif", ".ogg", ".mp3"}

_SUBTYPE_BIT_DEPTH = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
}


def bit_depth_for_subtype(subtype: str) -> int | None:
    """Bit depth of a libsndfile subtype; None for compressed or unknown encodings."""
    return _SUBTYPE_BIT_DEPTH.get(str(subtype).upper())


def _file_type(path: str, fmt: str) -> str:
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    return ext or str(fmt).lower()


def read_properties(path: str) -> AudioProperties:
    """Read header facts without decoding samples."""
    try:
        info = sf.info(path)
    except (RuntimeError, OSError) as exc:
        raise DecodeError(f"{path}: {exc}") from exc
    return AudioProperties(
        file_type=_file_type(path, info.format),
        sample_rate=int(info.samplerate),
        bit_depth=bit_depth_for_subtype(info.subtype),
        channel_count=int(info.channels),
        duration_seconds=float(info.frames) / float(info.samplerate) if info.samplerate else 0.0,
    )


def load_sample_buffer(path: str) -> SampleBuffer:
    """
    Decode a file into a SampleBuffer of float64 samples in [-1, 1].

    The file handle is opened and closed for this one decode.
    """
    try:
        with sf.SoundFile(path) as f:
            fs = int(f.samplerate)
            data = f.read(dtype="float64", always_2d=True)
    except (RuntimeError, OSError) as exc:
        raise DecodeError(f"{path}: {exc}") from exc
    if data.shape[0] == 0:
        data = np.zeros((0, max(1, data.shape[1])), dtype=np.float64)
    return SampleBuffer(samples=data, sample_rate=fs)
