"""JSON-shaped report dictionaries for metrics, verdicts and file reports."""
from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from audioqc.types import LevelMetrics, ValidationResult
from audioqc.utils.canonical_json import json_safe
from audioqc.version import __version__

if TYPE_CHECKING:
    from audioqc.pipeline import FileReport

SCHEMA_VERSION = "1.0"


def metrics_to_dict(metrics: LevelMetrics) -> dict:
    """
    Flatten LevelMetrics into plain JSON values.

    -inf levels become None, enums become their values and derived
    properties (clipping severity, event count, longest overlap segment) are
    materialized.
    """
    d = {
        "sample_rate": metrics.sample_rate,
        "channel_count": metrics.channel_count,
        "duration_seconds": metrics.duration_seconds,
        "peak_db": metrics.peak_db,
        "noise_floor": asdict(metrics.noise_floor),
        "normalization": asdict(metrics.normalization) if metrics.normalization else None,
        "reverb": asdict(metrics.reverb) if metrics.reverb else None,
        "silence": asdict(metrics.silence) if metrics.silence else None,
        "clipping": None,
        "stereo": asdict(metrics.stereo) if metrics.stereo else None,
        "mic_bleed": None,
        "overlap": None,
        "dynamic_range": asdict(metrics.dynamic_range) if metrics.dynamic_range else None,
    }
    if metrics.clipping is not None:
        d["clipping"] = {
            **asdict(metrics.clipping),
            "event_count": metrics.clipping.event_count,
            "severity": metrics.clipping.severity,
        }
    if metrics.mic_bleed is not None:
        d["mic_bleed"] = {
            "legacy": asdict(metrics.mic_bleed.legacy),
            "percentage_confirmed": asdict(metrics.mic_bleed.percentage_confirmed),
            "detected": metrics.mic_bleed.detected,
        }
    if metrics.overlap is not None:
        d["overlap"] = {
            **asdict(metrics.overlap),
            "longest_segment_seconds": metrics.overlap.longest_segment_seconds,
        }
    return json_safe(d)


def validation_to_dict(validation: ValidationResult) -> dict:
    return json_safe({
        "overall_status": validation.overall_status,
        "message": validation.message,
        "fields": {name: asdict(v) for name, v in validation.fields.items()},
    })


def build_file_report_dict(report: "FileReport") -> dict:
    """Report for one analyzed file."""
    return {
        "schema_version": SCHEMA_VERSION,
        "engine": {"name": "audioqc", "version": __version__},
        "input": {"path": report.path, **json_safe(asdict(report.properties))},
        "header_only": report.metrics is None,
        "metrics": metrics_to_dict(report.metrics) if report.metrics is not None else None,
        "validation": validation_to_dict(report.validation),
        "status": report.status.value,
    }
