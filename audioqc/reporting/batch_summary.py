from __future__ import annotations

from typing import Iterable

import numpy as np

from audioqc.batch.processor import BatchJob, FileResult
from audioqc.types import FloorConfidence, Status


def _summary_stats(values: Iterable[float | None]) -> dict | None:
    vals = [float(v) for v in values if isinstance(v, (int, float)) and np.isfinite(v)]
    if not vals:
        return None
    arr = np.asarray(vals, dtype=np.float64)
    return {
        "count": int(arr.size),
        "mean": float(np.mean(arr)),
        "min": float(np.min(arr)),
        "p50": float(np.percentile(arr, 50)),
        "p90": float(np.percentile(arr, 90)),
        "max": float(np.max(arr)),
    }


def _metrics_of(result: FileResult):
    return getattr(result.result, "metrics", None)


def build_batch_summary(job: BatchJob) -> dict:
    """
    Aggregate a finished batch: status counts, failure causes and metric spread.

    Failure causes count error messages and the names of fields that did not
    pass, so the most common problem in a batch is visible at a glance.
    """
    counts = {s.value: 0 for s in Status}
    failure_causes: dict[str, int] = {}
    stereo_types: dict[str, int] = {}
    low_confidence_floors = 0
    peak_values: list[float] = []
    floor_values: list[float] = []
    overlap_values: list[float] = []

    for r in job.results:
        counts[r.status.value] += 1
        if r.error:
            failure_causes[r.error] = failure_causes.get(r.error, 0) + 1
            continue
        validation = getattr(r.result, "validation", None)
        if validation is not None:
            for name, verdict in validation.fields.items():
                if verdict.status in (Status.WARNING, Status.FAIL):
                    cause = f"{name}: {verdict.status.value}"
                    failure_causes[cause] = failure_causes.get(cause, 0) + 1
        metrics = _metrics_of(r)
        if metrics is None:
            continue
        peak_values.append(metrics.peak_db)
        floor_values.append(metrics.noise_floor_db)
        if metrics.noise_floor.confidence == FloorConfidence.LOW:
            low_confidence_floors += 1
        if metrics.stereo is not None:
            key = metrics.stereo.type.value
            stereo_types[key] = stereo_types.get(key, 0) + 1
        if metrics.overlap is not None:
            overlap_values.append(metrics.overlap.percentage)

    return {
        "state": job.state.value,
        "total": job.total,
        "completed": job.completed,
        "was_cancelled": job.was_cancelled,
        "counts": counts,
        "failure_causes": dict(sorted(failure_causes.items(), key=lambda kv: (-kv[1], kv[0]))),
        "stereo_types": stereo_types,
        "low_confidence_noise_floors": low_confidence_floors,
        "metrics": {
            "peak_db": _summary_stats(peak_values),
            "noise_floor_db": _summary_stats(floor_values),
            "overlap_percentage": _summary_stats(overlap_values),
        },
    }


def render_markdown_summary(summary: dict) -> str:
    """Render a short Markdown summary of a batch."""
    counts = summary["counts"]
    lines = [
        "# audioqc batch summary",
        "",
        f"- Files: {summary['completed']} of {summary['total']} processed"
        + (" (cancelled)" if summary["was_cancelled"] else ""),
        f"- Pass: {counts['pass']}",
        f"- Warning: {counts['warning']}",
        f"- Fail: {counts['fail']}",
        f"- Error: {counts['error']}",
        "",
    ]
    if summary["failure_causes"]:
        lines.append("## Top failure causes")
        lines.append("")
        for cause, n in list(summary["failure_causes"].items())[:10]:
            lines.append(f"- {cause} ({n})")
        lines.append("")
    return "\n".join(lines)
