from __future__ import annotations

import json

import numpy as np

from audioqc.analysis.analyzer import analyze
from audioqc.batch.processor import BatchProcessor
from audioqc.errors import DecodeError
from audioqc.pipeline import FileReport
from audioqc.reporting.batch_summary import build_batch_summary, render_markdown_summary
from audioqc.reporting.report import build_file_report_dict, metrics_to_dict, validation_to_dict
from audioqc.thresholds.evaluator import validate
from audioqc.types import AudioProperties, Criteria, SampleBuffer
from tests.conftest import FS, speech_like, stereo


def _report(samples: np.ndarray, path: str, criteria: Criteria) -> FileReport:
    buf = SampleBuffer(samples, FS)
    props = AudioProperties(
        file_type="wav",
        sample_rate=FS,
        bit_depth=16,
        channel_count=buf.channel_count,
        duration_seconds=buf.duration_seconds,
    )
    metrics = analyze(buf)
    return FileReport(path=path, properties=props, metrics=metrics, validation=validate(props, metrics, None, criteria))


def test_metrics_dict_is_strict_json_for_silence():
    m = analyze(SampleBuffer(np.zeros((FS, 2)), FS))
    d = metrics_to_dict(m)
    json.dumps(d, allow_nan=False)
    assert d["peak_db"] is None
    assert d["noise_floor"]["db"] is None
    assert d["stereo"]["type"] == "Silent"
    assert d["clipping"]["severity"] == "none"
    assert d["overlap"]["longest_segment_seconds"] == 0.0
    assert d["mic_bleed"]["detected"] is False


def test_file_report_dict():
    report = _report(speech_like(3.0), "a.wav", Criteria(sample_rates=frozenset({44100})))
    d = build_file_report_dict(report)
    json.dumps(d, allow_nan=False)
    assert d["status"] == "fail"
    assert d["input"]["path"] == "a.wav"
    assert d["validation"]["fields"]["sample_rate"]["expected"] == [44100]
    assert d["metrics"]["stereo"] is None


def test_validation_dict_statuses_are_strings():
    report = _report(speech_like(3.0), "a.wav", Criteria())
    d = validation_to_dict(report.validation)
    assert d == {"overall_status": "pass", "message": "", "fields": {}}


def test_batch_summary_counts_and_causes():
    stereo_file = stereo(speech_like(3.0, seed=1), speech_like(3.0, seed=2))
    reports = {
        "good.wav": _report(speech_like(3.0), "good.wav", Criteria()),
        "bad.wav": _report(stereo_file, "bad.wav", Criteria(channel_counts=frozenset({1}))),
    }

    def per_file(ref: str) -> FileReport:
        if ref == "broken.wav":
            raise DecodeError("unreadable")
        return reports[ref]

    job = BatchProcessor().run(["good.wav", "bad.wav", "broken.wav"], per_file, concurrency=1)
    summary = build_batch_summary(job)
    assert summary["counts"] == {"pass": 1, "warning": 0, "fail": 1, "error": 1}
    assert summary["failure_causes"]["channel_count: fail"] == 1
    assert summary["failure_causes"]["Could not obtain audio data: unreadable"] == 1
    assert summary["metrics"]["peak_db"]["count"] == 2
    assert sum(summary["stereo_types"].values()) == 1
    md = render_markdown_summary(summary)
    assert "Error: 1" in md
    assert "channel_count: fail" in md


def test_header_only_report_and_summary():
    props = AudioProperties(file_type="wav", sample_rate=44100, bit_depth=16, channel_count=1, duration_seconds=3.0)
    criteria = Criteria(sample_rates=frozenset({48000}))
    report = FileReport(path="h.wav", properties=props, metrics=None, validation=validate(props, None, None, criteria))
    d = build_file_report_dict(report)
    json.dumps(d, allow_nan=False)
    assert d["header_only"] is True
    assert d["metrics"] is None
    assert d["status"] == "fail"

    job = BatchProcessor().run(["h.wav"], lambda ref: report)
    summary = build_batch_summary(job)
    assert summary["counts"]["fail"] == 1
    assert summary["failure_causes"] == {"sample_rate: fail": 1}
    assert summary["metrics"]["peak_db"] is None
