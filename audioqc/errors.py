"""Exception types raised outside the pure analysis core."""
from __future__ import annotations


class AudioQCError(Exception):
    """Base class for audioqc errors."""


class DecodeError(AudioQCError):
    """Audio data could not be obtained (missing file, unreadable container, decode failure)."""


class CriteriaError(AudioQCError):
    """A criteria preset or criteria file is malformed."""


def describe_failure(exc: BaseException) -> str:
    """Human-readable message separating data acquisition from analysis failures."""
    if isinstance(exc, (DecodeError, OSError)):
        return f"Could not obtain audio data: {exc}"
    return f"Analysis failed: {exc}"
