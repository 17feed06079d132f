from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Sequence
import numpy as np


class Status(str, Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"
    ERROR = "error"


_SEVERITY = {Status.PASS: 0, Status.WARNING: 1, Status.FAIL: 2}


def worst_status(statuses: Iterable[Status]) -> Status:
    """Return the most severe of pass/warning/fail (pass when empty)."""
    worst = Status.PASS
    for status in statuses:
        if _SEVERITY[status] > _SEVERITY[worst]:
            worst = status
    return worst


class FloorConfidence(str, Enum):
    NORMAL = "normal"
    LOW = "low"


class NormalizationState(str, Enum):
    NORMALIZED = "normalized"
    TOO_LOUD = "too_loud"
    TOO_QUIET = "too_quiet"


class ClippingSeverity(str, Enum):
    NONE = "none"
    INFO = "info"
    WARNING = "warning"
    FAIL = "fail"


class StereoType(str, Enum):
    CONVERSATIONAL_STEREO = "Conversational Stereo"
    MONO_AS_STEREO = "Mono as Stereo"
    MONO_IN_LEFT = "Mono in Left Channel"
    MONO_IN_RIGHT = "Mono in Right Channel"
    MIXED_STEREO = "Mixed Stereo"
    SILENT = "Silent"
    UNDETERMINED = "Undetermined"


class BleedMethod(str, Enum):
    LEGACY = "legacy"
    PERCENTAGE_CONFIRMED = "percentage_confirmed"


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Decoded audio, shaped (frame_count, channel_count), normalized to [-1, 1]."""
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        x = np.asarray(self.samples, dtype=np.float64)
        if x.ndim == 1:
            x = x.reshape(-1, 1)
        if x.ndim != 2 or x.shape[1] < 1:
            raise ValueError("SampleBuffer expects samples shaped (frames, channels).")
        if int(self.sample_rate) <= 0:
            raise ValueError("SampleBuffer expects a positive sample rate.")
        object.__setattr__(self, "samples", x)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_channels(cls, sample_rate: int, channels: Sequence[Sequence[float]]) -> "SampleBuffer":
        """Build a buffer from one sample sequence per channel."""
        if len(channels) == 0:
            raise ValueError("SampleBuffer needs at least one channel.")
        arrays = [np.asarray(ch, dtype=np.float64) for ch in channels]
        lengths = {a.size for a in arrays}
        if len(lengths) != 1:
            raise ValueError(f"Channel lengths differ: {sorted(lengths)}.")
        return cls(samples=np.stack(arrays, axis=1), sample_rate=sample_rate)

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / float(self.sample_rate)

    def channel(self, index: int) -> np.ndarray:
        return self.samples[:, index]


@dataclass(frozen=True)
class AudioProperties:
    file_type: str
    sample_rate: int
    bit_depth: int | None
    channel_count: int
    duration_seconds: float


@dataclass(frozen=True)
class NoiseFloorEstimate:
    db: float
    confidence: FloorConfidence = FloorConfidence.NORMAL
    initial_db: float = float("-inf")

    @property
    def measurable(self) -> bool:
        return bool(np.isfinite(self.db))

    def anchor(self, fallback_db: float) -> float:
        """Floor to build thresholds on; the fallback when nothing was measured."""
        return float(self.db) if self.measurable else float(fallback_db)


@dataclass(frozen=True)
class Normalization:
    status: NormalizationState
    peak_db: float
    target_db: float
    message: str


@dataclass(frozen=True)
class ReverbEstimate:
    rt60_seconds: float
    label: str
    transient_count: int


@dataclass(frozen=True)
class SilenceRegion:
    start_seconds: float
    end_seconds: float
    channel: int

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds


@dataclass(frozen=True)
class SilenceSummary:
    leading_seconds: float
    trailing_seconds: float
    longest_seconds: float
    threshold_db: float
    digital_silence_percentage: float
    regions: tuple[SilenceRegion, ...] = ()


@dataclass(frozen=True)
class ClippingRegion:
    start_seconds: float
    end_seconds: float
    channel: int
    sample_count: int


@dataclass(frozen=True)
class ClippingSummary:
    clipped_sample_count: int
    clipped_percentage: float
    near_clipping_percentage: float
    regions: tuple[ClippingRegion, ...] = ()

    @property
    def event_count(self) -> int:
        return len(self.regions)

    @property
    def severity(self) -> ClippingSeverity:
        if not self.regions:
            return ClippingSeverity.NONE
        if self.clipped_percentage > 1.0:
            return ClippingSeverity.FAIL
        if self.clipped_percentage >= 0.1:
            return ClippingSeverity.WARNING
        return ClippingSeverity.INFO


@dataclass(frozen=True)
class StereoSeparation:
    type: StereoType
    confidence: float
    total_blocks: int
    active_blocks: int
    left_dominant_blocks: int
    right_dominant_blocks: int
    balanced_blocks: int
    mean_correlation: float | None = None


@dataclass(frozen=True)
class LegacyBleed:
    left_channel_bleed_db: float
    right_channel_bleed_db: float
    detected: bool
    method: BleedMethod = BleedMethod.LEGACY


@dataclass(frozen=True)
class ConfirmedBleed:
    left_isolation_db: float | None
    right_isolation_db: float | None
    percentage_confirmed_bleed: float
    severity_score: float
    detected: bool
    method: BleedMethod = BleedMethod.PERCENTAGE_CONFIRMED


@dataclass(frozen=True)
class MicBleed:
    legacy: LegacyBleed
    percentage_confirmed: ConfirmedBleed

    @property
    def detected(self) -> bool:
        return self.legacy.detected or self.percentage_confirmed.detected


@dataclass(frozen=True)
class OverlapSegment:
    start_seconds: float
    duration_seconds: float


@dataclass(frozen=True)
class SpeechOverlap:
    percentage: float
    threshold_db: float
    segments: tuple[OverlapSegment, ...] = ()

    @property
    def longest_segment_seconds(self) -> float:
        return max((s.duration_seconds for s in self.segments), default=0.0)


@dataclass(frozen=True)
class DynamicRange:
    average_loudness_db: float
    plr: float | None
    label: str | None


@dataclass(frozen=True)
class LevelMetrics:
    sample_rate: int
    channel_count: int
    duration_seconds: float
    peak_db: float
    noise_floor: NoiseFloorEstimate
    normalization: Normalization | None = None
    reverb: ReverbEstimate | None = None
    silence: SilenceSummary | None = None
    clipping: ClippingSummary | None = None
    stereo: StereoSeparation | None = None
    mic_bleed: MicBleed | None = None
    overlap: SpeechOverlap | None = None
    dynamic_range: DynamicRange | None = None

    @property
    def noise_floor_db(self) -> float:
        return self.noise_floor.db


@dataclass(frozen=True)
class Criteria:
    file_types: frozenset[str] | None = None
    sample_rates: frozenset[int] | None = None
    bit_depths: frozenset[int] | None = None
    channel_counts: frozenset[int] | None = None
    min_duration_seconds: float | None = None
    stereo_types: frozenset[StereoType] | None = None
    overlap_warning_pct: float | None = None
    overlap_fail_pct: float | None = None
    overlap_segment_warning_seconds: float | None = None
    overlap_segment_fail_seconds: float | None = None
    check_clipping: bool = False


@dataclass(frozen=True)
class FilenameStatus:
    status: Status
    message: str = ""


@dataclass(frozen=True)
class FieldVerdict:
    status: Status
    actual: Any
    expected: Any
    message: str = ""


@dataclass(frozen=True)
class ValidationResult:
    fields: dict[str, FieldVerdict] = field(default_factory=dict)
    overall_status: Status = Status.PASS
    message: str = ""

    @classmethod
    def from_error(cls, message: str) -> "ValidationResult":
        """Result for a file whose data could not be obtained or analyzed."""
        return cls(fields={}, overall_status=Status.ERROR, message=message)
