from __future__ import annotations
import json

from audioqc.errors import CriteriaError
from audioqc.profiles.presets import DEFAULT_PRESETS
from audioqc.types import Criteria, StereoType

_KNOWN_KEYS = {
    "name",
    "file_types",
    "sample_rates",
    "bit_depths",
    "channel_counts",
    "min_duration_seconds",
    "stereo_types",
    "overlap",
    "check_clipping",
}


def _int_set(j: dict, key: str) -> frozenset[int] | None:
    values = j.get(key)
    if values is None or values == []:
        return None
    if not isinstance(values, list):
        raise CriteriaError(f"'{key}' must be a list.")
    try:
        return frozenset(int(v) for v in values)
    except (TypeError, ValueError) as exc:
        raise CriteriaError(f"'{key}' must contain integers: {exc}") from exc


def _optional_float(value, key: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise CriteriaError(f"'{key}' must be a number: {exc}") from exc


def criteria_from_dict(j: dict) -> Criteria:
    """
    Build Criteria from a JSON-shaped dict.

    Missing or empty entries leave the axis unchecked. Overlap limits come as
    a pair: both percentages, and optionally both segment durations.
    """
    if not isinstance(j, dict):
        raise CriteriaError("Criteria must be a JSON object.")
    unknown = set(j) - _KNOWN_KEYS
    if unknown:
        raise CriteriaError(f"Unknown criteria keys: {', '.join(sorted(unknown))}")

    file_types = j.get("file_types")
    if file_types is not None and not isinstance(file_types, list):
        raise CriteriaError("'file_types' must be a list.")

    stereo_types = None
    if j.get("stereo_types"):
        try:
            stereo_types = frozenset(StereoType(v) for v in j["stereo_types"])
        except ValueError as exc:
            raise CriteriaError(f"Unknown stereo type: {exc}") from exc

    overlap = j.get("overlap") or {}
    if not isinstance(overlap, dict):
        raise CriteriaError("'overlap' must be an object.")
    warn_pct = _optional_float(overlap.get("warning_pct"), "overlap.warning_pct")
    fail_pct = _optional_float(overlap.get("fail_pct"), "overlap.fail_pct")
    if (warn_pct is None) != (fail_pct is None):
        raise CriteriaError("Overlap needs both 'warning_pct' and 'fail_pct'.")
    if warn_pct is not None and warn_pct > fail_pct:
        raise CriteriaError("Overlap 'warning_pct' must not exceed 'fail_pct'.")
    seg_warn = _optional_float(overlap.get("segment_warning_seconds"), "overlap.segment_warning_seconds")
    seg_fail = _optional_float(overlap.get("segment_fail_seconds"), "overlap.segment_fail_seconds")
    if (seg_warn is None) != (seg_fail is None):
        raise CriteriaError("Overlap segments need both 'segment_warning_seconds' and 'segment_fail_seconds'.")

    return Criteria(
        file_types=frozenset(str(t) for t in file_types) if file_types else None,
        sample_rates=_int_set(j, "sample_rates"),
        bit_depths=_int_set(j, "bit_depths"),
        channel_counts=_int_set(j, "channel_counts"),
        min_duration_seconds=_optional_float(j.get("min_duration_seconds"), "min_duration_seconds"),
        stereo_types=stereo_types,
        overlap_warning_pct=warn_pct,
        overlap_fail_pct=fail_pct,
        overlap_segment_warning_seconds=seg_warn,
        overlap_segment_fail_seconds=seg_fail,
        check_clipping=bool(j.get("check_clipping", False)),
    )


def get_preset(name: str) -> Criteria:
    """Criteria for a built-in preset id."""
    try:
        preset = DEFAULT_PRESETS[name]
    except KeyError as exc:
        known = ", ".join(sorted(DEFAULT_PRESETS))
        raise CriteriaError(f"Unknown preset '{name}' (known: {known})") from exc
    return criteria_from_dict(preset)


def load_criteria(path: str) -> Criteria:
    """
    Load criteria from a JSON file.

    Args:
        path: Path to the criteria JSON file

    Returns:
        Criteria
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            j = json.load(f)
        except json.JSONDecodeError as exc:
            raise CriteriaError(f"Invalid criteria JSON: {exc}") from exc
    return criteria_from_dict(j)
