"""
audioqc - Audio Quality Control Tool

Validates audio files against format criteria and reports level, noise floor,
silence, clipping, reverb, stereo and dynamic range diagnostics.
"""
from audioqc.version import __version__
from audioqc.types import (
    Status,
    StereoType,
    SampleBuffer,
    AudioProperties,
    LevelMetrics,
    Criteria,
    FilenameStatus,
    FieldVerdict,
    ValidationResult,
)
from audioqc.analysis.analyzer import analyze
from audioqc.thresholds.evaluator import validate
from audioqc.batch.processor import BatchProcessor, BatchJob, FileResult

__all__ = [
    "__version__",
    "Status",
    "StereoType",
    "SampleBuffer",
    "AudioProperties",
    "LevelMetrics",
    "Criteria",
    "FilenameStatus",
    "FieldVerdict",
    "ValidationResult",
    "analyze",
    "validate",
    "BatchProcessor",
    "BatchJob",
    "FileResult",
]
