"""Per-file pipeline: read header, decode, analyze, validate."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Callable

from audioqc.analysis.analyzer import analyze
from audioqc.io.audio import load_sample_buffer, read_properties
from audioqc.thresholds.evaluator import validate
from audioqc.types import (
    AudioProperties,
    Criteria,
    FilenameStatus,
    LevelMetrics,
    Status,
    ValidationResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileReport:
    path: str
    properties: AudioProperties
    metrics: LevelMetrics | None
    validation: ValidationResult

    @property
    def status(self) -> Status:
        return self.validation.overall_status


def filename_status(path: str, pattern: str) -> FilenameStatus:
    """Match the file name (without extension) against a regular expression."""
    stem = os.path.splitext(os.path.basename(path))[0]
    if re.fullmatch(pattern, stem):
        return FilenameStatus(status=Status.PASS)
    return FilenameStatus(status=Status.FAIL, message=f"Filename '{stem}' does not match {pattern}")


def analyze_file(
    path: str,
    criteria: Criteria,
    *,
    filename_result: FilenameStatus | None = None,
    config: dict | None = None,
    header_only: bool = False,
) -> FileReport:
    """
    Run the full pipeline for one file.

    With header_only the samples are never decoded: metrics stay None and
    only header and filename axes are validated.

    Raises:
        DecodeError: The header or the samples could not be read
    """
    properties = read_properties(path)
    metrics = None
    if not header_only:
        metrics = analyze(load_sample_buffer(path), config=config)
    validation = validate(properties, metrics, filename_result, criteria)
    logger.debug("%s: %s", path, validation.overall_status.value)
    return FileReport(path=path, properties=properties, metrics=metrics, validation=validation)


def make_per_file(
    criteria: Criteria,
    *,
    filename_pattern: str | None = None,
    config: dict | None = None,
    header_only: bool = False,
) -> Callable[[str], FileReport]:
    """Bind criteria and options into a single-argument callable for BatchProcessor.run."""
    def per_file(path: str) -> FileReport:
        fn_result = filename_status(path, filename_pattern) if filename_pattern else None
        return analyze_file(path, criteria, filename_result=fn_result, config=config, header_only=header_only)

    return per_file
