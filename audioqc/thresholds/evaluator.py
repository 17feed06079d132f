"""Criteria validation: turn properties and metrics into pass/warning/fail verdicts."""
from __future__ import annotations

import re

from audioqc.types import (
    AudioProperties,
    ClippingSeverity,
    Criteria,
    FieldVerdict,
    FilenameStatus,
    LevelMetrics,
    Status,
    ValidationResult,
    worst_status,
)

_VARIANT_SUFFIX = re.compile(r"\s*\(.*?\)\s*")


def normalize_file_type(value: str) -> str:
    """Lowercase, strip a leading dot and parenthesised variants ("WAV (PCM)" -> "wav")."""
    text = _VARIANT_SUFFIX.sub("", str(value)).strip().lower()
    return text.lstrip(".")


def _status_high_is_bad(value: float, pass_lim: float, warn_lim: float) -> Status:
    """Evaluate status where higher values are worse."""
    if value <= pass_lim:
        return Status.PASS
    if value <= warn_lim:
        return Status.WARNING
    return Status.FAIL


def _membership(field: str, actual, allowed) -> FieldVerdict:
    expected = sorted(allowed, key=str)
    if actual in allowed:
        return FieldVerdict(status=Status.PASS, actual=actual, expected=expected)
    shown = ", ".join(str(v) for v in expected)
    return FieldVerdict(
        status=Status.FAIL,
        actual=actual,
        expected=expected,
        message=f"{field} {actual} not in allowed values: {shown}",
    )


def _check_stereo_type(properties: AudioProperties, metrics: LevelMetrics | None, criteria: Criteria) -> FieldVerdict | None:
    if not criteria.stereo_types or properties.channel_count != 2 or metrics is None:
        return None
    expected = sorted(t.value for t in criteria.stereo_types)
    stereo = metrics.stereo
    if stereo is None:
        return FieldVerdict(
            status=Status.FAIL,
            actual=None,
            expected=expected,
            message="Stereo type could not be determined",
        )
    if stereo.type in criteria.stereo_types:
        return FieldVerdict(status=Status.PASS, actual=stereo.type.value, expected=expected)
    return FieldVerdict(
        status=Status.FAIL,
        actual=stereo.type.value,
        expected=expected,
        message=f"Stereo type {stereo.type.value} not allowed (expected: {', '.join(expected)})",
    )


def _check_overlap(metrics: LevelMetrics | None, criteria: Criteria) -> FieldVerdict | None:
    if criteria.overlap_warning_pct is None or criteria.overlap_fail_pct is None:
        return None
    if metrics is None or metrics.overlap is None:
        return None
    warn_pct = float(criteria.overlap_warning_pct)
    fail_pct = float(criteria.overlap_fail_pct)
    pct = float(metrics.overlap.percentage)
    pct_status = _status_high_is_bad(pct, warn_pct, fail_pct)
    statuses = [pct_status]
    parts = [f"{pct:.1f}% overlap"]
    if pct_status == Status.WARNING:
        parts[0] += f" (>{warn_pct:g}%)"
    elif pct_status == Status.FAIL:
        parts[0] += f" (>{fail_pct:g}%)"

    expected = {"warning_pct": warn_pct, "fail_pct": fail_pct}
    seg_warn = criteria.overlap_segment_warning_seconds
    seg_fail = criteria.overlap_segment_fail_seconds
    if seg_warn is not None and seg_fail is not None:
        longest = metrics.overlap.longest_segment_seconds
        seg_status = _status_high_is_bad(longest, float(seg_warn), float(seg_fail))
        statuses.append(seg_status)
        expected["segment_warning_seconds"] = float(seg_warn)
        expected["segment_fail_seconds"] = float(seg_fail)
        if seg_status == Status.WARNING:
            parts.append(f"max segment {longest:.1f}s >{float(seg_warn):g}s")
        elif seg_status == Status.FAIL:
            parts.append(f"max segment {longest:.1f}s >{float(seg_fail):g}s")

    return FieldVerdict(
        status=worst_status(statuses),
        actual=pct,
        expected=expected,
        message="; ".join(parts),
    )


def _check_clipping(metrics: LevelMetrics | None, criteria: Criteria) -> FieldVerdict | None:
    if not criteria.check_clipping or metrics is None or metrics.clipping is None:
        return None
    clipping = metrics.clipping
    severity = clipping.severity
    if severity == ClippingSeverity.FAIL:
        status = Status.FAIL
    elif severity == ClippingSeverity.WARNING:
        status = Status.WARNING
    else:
        status = Status.PASS
    message = ""
    if clipping.event_count:
        message = f"{clipping.event_count} clipping events ({clipping.clipped_percentage:.3f}% of samples)"
    return FieldVerdict(
        status=status,
        actual=clipping.clipped_percentage,
        expected=severity.value,
        message=message,
    )


def validate(
    properties: AudioProperties,
    metrics: LevelMetrics | None,
    filename_result: FilenameStatus | None,
    criteria: Criteria,
) -> ValidationResult:
    """
    Validate header properties and signal metrics against criteria.

    Only axes present in criteria are checked. Structural axes are binary,
    duration is a minimum, stereo type applies to two-channel files only and
    speech overlap is graded against warning/fail limits. The overall status
    is the worst field verdict and never "error".

    Args:
        properties: Header facts of the file
        metrics: Analyzer output, or None for header-only validation (signal
            axes are then skipped)
        filename_result: Externally computed filename verdict, if any
        criteria: What to check

    Returns:
        ValidationResult keyed by field name
    """
    fields: dict[str, FieldVerdict] = {}

    if criteria.file_types:
        allowed = frozenset(normalize_file_type(t) for t in criteria.file_types)
        fields["file_type"] = _membership("File type", normalize_file_type(properties.file_type), allowed)
    if criteria.sample_rates:
        fields["sample_rate"] = _membership("Sample rate", int(properties.sample_rate), criteria.sample_rates)
    if criteria.bit_depths:
        fields["bit_depth"] = _membership("Bit depth", properties.bit_depth, criteria.bit_depths)
    if criteria.channel_counts:
        fields["channel_count"] = _membership("Channel count", int(properties.channel_count), criteria.channel_counts)

    if criteria.min_duration_seconds is not None:
        minimum = float(criteria.min_duration_seconds)
        duration = float(properties.duration_seconds)
        if duration >= minimum:
            fields["duration"] = FieldVerdict(status=Status.PASS, actual=duration, expected=minimum)
        else:
            fields["duration"] = FieldVerdict(
                status=Status.FAIL,
                actual=duration,
                expected=minimum,
                message=f"Duration {duration:.1f}s shorter than minimum {minimum:g}s",
            )

    stereo_verdict = _check_stereo_type(properties, metrics, criteria)
    if stereo_verdict is not None:
        fields["stereo_type"] = stereo_verdict
    overlap_verdict = _check_overlap(metrics, criteria)
    if overlap_verdict is not None:
        fields["speech_overlap"] = overlap_verdict
    clipping_verdict = _check_clipping(metrics, criteria)
    if clipping_verdict is not None:
        fields["clipping"] = clipping_verdict

    if filename_result is not None:
        status = Status.PASS if filename_result.status == Status.PASS else Status.FAIL
        fields["filename"] = FieldVerdict(
            status=status,
            actual=filename_result.status.value,
            expected=Status.PASS.value,
            message=filename_result.message,
        )

    overall = worst_status(v.status for v in fields.values())
    failed = [name for name, v in fields.items() if v.status != Status.PASS]
    message = "" if not failed else "Issues: " + ", ".join(failed)
    return ValidationResult(fields=fields, overall_status=overall, message=message)
