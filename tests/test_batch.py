from __future__ import annotations

import threading
import time

import pytest

from audioqc.batch.processor import BatchProcessor, BatchState
from audioqc.errors import DecodeError
from audioqc.types import Status, ValidationResult


def _ok(status: Status = Status.PASS) -> ValidationResult:
    return ValidationResult(fields={}, overall_status=status)


def test_partial_failures_do_not_stop_the_batch():
    refs = [f"file_{i:02d}.wav" for i in range(1, 11)]
    lock = threading.Lock()
    in_flight = 0
    max_in_flight = 0

    def per_file(ref: str) -> ValidationResult:
        nonlocal in_flight, max_in_flight
        with lock:
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
        try:
            time.sleep(0.01)
            if ref == "file_03.wav":
                raise DecodeError("truncated header")
            if ref == "file_07.wav":
                raise ValueError("bad samples")
            return _ok()
        finally:
            with lock:
                in_flight -= 1

    completed, errors, progress = [], [], []
    processor = BatchProcessor()
    job = processor.run(
        refs,
        per_file,
        concurrency=3,
        on_progress=lambda cur, total, name: progress.append((cur, total, name)),
        on_file_complete=completed.append,
        on_error=errors.append,
    )

    assert job.state == BatchState.COMPLETED
    assert processor.state == BatchState.COMPLETED
    assert not job.was_cancelled
    assert job.completed == job.total == 10
    assert len(job.results) == 10
    assert max_in_flight <= 3
    assert len(completed) == 10
    assert len(progress) == 20
    assert all(total == 10 for _, total, _ in progress)

    by_ref = {r.file_ref: r for r in job.results}
    assert sum(1 for r in job.results if r.status == Status.ERROR) == 2
    assert sum(1 for r in job.results if r.status == Status.PASS) == 8
    assert by_ref["file_03.wav"].error.startswith("Could not obtain audio data")
    assert by_ref["file_07.wav"].error.startswith("Analysis failed")
    assert by_ref["file_07.wav"].result is None
    assert {r.file_ref for r in errors} == {"file_03.wav", "file_07.wav"}


def test_cancel_after_four_dispatches():
    refs = [f"f{i}" for i in range(10)]
    processor = BatchProcessor()
    calls = []

    def per_file(ref: str) -> ValidationResult:
        calls.append(ref)
        if len(calls) == 4:
            processor.cancel()
        return _ok()

    job = processor.run(refs, per_file, concurrency=1)
    assert job.was_cancelled
    assert job.state == BatchState.CANCELLED
    assert job.completed == 4
    assert job.total == 10
    assert [r.file_ref for r in job.results] == refs[:4]


def test_cancel_lets_in_flight_work_finish():
    refs = [f"f{i}" for i in range(10)]
    processor = BatchProcessor()
    started = []
    lock = threading.Lock()

    def per_file(ref: str) -> ValidationResult:
        with lock:
            started.append(ref)
            if len(started) == 4:
                processor.cancel()
        time.sleep(0.02)
        return _ok()

    job = processor.run(refs, per_file, concurrency=3)
    assert job.was_cancelled
    assert job.completed == job.dispatched == len(started)
    assert 4 <= job.completed < 10
    assert all(r.status == Status.PASS for r in job.results)


def test_run_while_running_raises():
    processor = BatchProcessor()
    nested_errors = []

    def per_file(ref: str) -> ValidationResult:
        try:
            processor.run(["other"], lambda r: _ok())
        except RuntimeError as exc:
            nested_errors.append(exc)
        return _ok()

    job = processor.run(["a"], per_file)
    assert job.state == BatchState.COMPLETED
    assert len(nested_errors) == 1


def test_result_status_follows_validation():
    processor = BatchProcessor()
    job = processor.run(["a", "b"], lambda r: _ok(Status.WARNING if r == "a" else Status.FAIL), concurrency=1)
    assert [r.status for r in job.results] == [Status.WARNING, Status.FAIL]
    # a finished processor can be reused
    again = processor.run(["c"], lambda r: _ok())
    assert again.completed == 1


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        BatchProcessor().run(["a"], lambda r: _ok(), concurrency=0)


def test_failing_callback_does_not_stop_the_batch():
    refs = [f"f{i}" for i in range(10)]
    seen = []

    def on_file_complete(result) -> None:
        seen.append(result.file_ref)
        if result.file_ref == "f1":
            raise OSError("disk full")

    def on_progress(completed: int, total: int, name: str) -> None:
        raise RuntimeError("progress sink closed")

    job = BatchProcessor().run(
        refs,
        lambda r: _ok(),
        concurrency=1,
        on_progress=on_progress,
        on_file_complete=on_file_complete,
    )
    assert job.state == BatchState.COMPLETED
    assert not job.was_cancelled
    assert job.completed == job.total == 10
    assert seen == refs


def test_exception_escaping_run_does_not_report_completed():
    processor = BatchProcessor()

    def per_file(ref: str) -> ValidationResult:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        processor.run(["a", "b"], per_file, concurrency=1)
    assert processor.state == BatchState.CANCELLED
    assert processor.job.was_cancelled
    assert processor.job.completed == 0
