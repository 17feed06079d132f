"""Concurrent batch processing with cancellation and per-file failure isolation."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from audioqc.errors import describe_failure
from audioqc.types import Status

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3


class BatchState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FileResult:
    file_ref: Any
    result: Any
    error: str | None
    status: Status

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchJob:
    file_refs: tuple
    concurrency: int = DEFAULT_CONCURRENCY
    results: list[FileResult] = field(default_factory=list)
    state: BatchState = BatchState.IDLE
    dispatched: int = 0
    completed: int = 0
    was_cancelled: bool = False

    @property
    def total(self) -> int:
        return len(self.file_refs)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if r.status == Status.ERROR)


def _ref_name(file_ref: Any) -> str:
    return str(getattr(file_ref, "name", file_ref))


def _result_status(result: Any) -> Status:
    """Status carried by a per-file result (ValidationResult, FileReport or similar)."""
    status = getattr(result, "overall_status", None)
    if status is None:
        status = getattr(result, "status", None)
    return status if isinstance(status, Status) else Status.PASS


class BatchProcessor:
    """
    Run a per-file callable over many file references.

    At most `concurrency` calls are in flight; references are dispatched in
    input order as slots free up. Results and callbacks are handled on the
    thread that called run(). cancel() may be called from any thread: no new
    file is dispatched afterwards, in-flight files are allowed to finish.
    """

    def __init__(self) -> None:
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._state = BatchState.IDLE
        self._job: BatchJob | None = None

    @property
    def state(self) -> BatchState:
        with self._lock:
            return self._state

    @property
    def job(self) -> BatchJob | None:
        return self._job

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Request cancellation of the running batch."""
        self._cancel.set()
        logger.info("batch cancellation requested")

    def _collect(self, file_ref: Any, fut: Future) -> FileResult:
        try:
            result = fut.result()
        except Exception as exc:
            message = describe_failure(exc)
            logger.warning("%s: %s", _ref_name(file_ref), message)
            return FileResult(file_ref=file_ref, result=None, error=message, status=Status.ERROR)
        return FileResult(file_ref=file_ref, result=result, error=None, status=_result_status(result))

    def _notify(self, callback: Callable[..., None] | None, *args: Any) -> None:
        """Invoke a caller callback; its exceptions are logged and never stop the batch."""
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("batch callback %s failed", getattr(callback, "__name__", callback))

    def run(
        self,
        file_refs: Iterable[Any],
        per_file: Callable[[Any], Any],
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_progress: Callable[[int, int, str], None] | None = None,
        on_file_complete: Callable[[FileResult], None] | None = None,
        on_error: Callable[[FileResult], None] | None = None,
    ) -> BatchJob:
        """
        Process every file reference and return the finished job.

        Args:
            file_refs: Ordered file references passed one by one to per_file
            per_file: Callable producing a result for one reference; exceptions
                become error results and do not stop the batch
            concurrency: Maximum number of files in flight
            on_progress: Called as (completed, total, filename) on every
                dispatch and every completion
            on_file_complete: Called once per finished file, in completion order
            on_error: Additionally called for error results

        Callback exceptions are logged and the batch carries on.

        Returns:
            BatchJob in state completed or cancelled
        """
        if int(concurrency) < 1:
            raise ValueError("concurrency must be at least 1.")
        with self._lock:
            if self._state == BatchState.RUNNING:
                raise RuntimeError("A batch is already running.")
            self._state = BatchState.RUNNING
        self._cancel.clear()

        refs: Sequence[Any] = tuple(file_refs)
        job = BatchJob(file_refs=tuple(refs), concurrency=int(concurrency), state=BatchState.RUNNING)
        self._job = job
        total = job.total
        logger.info("batch started: %d files, concurrency %d", total, job.concurrency)

        pending: dict[Future, tuple[int, Any]] = {}
        next_index = 0
        try:
            with ThreadPoolExecutor(max_workers=job.concurrency) as ex:
                while True:
                    while (
                        next_index < total
                        and len(pending) < job.concurrency
                        and not self._cancel.is_set()
                    ):
                        ref = refs[next_index]
                        pending[ex.submit(per_file, ref)] = (next_index, ref)
                        next_index += 1
                        job.dispatched += 1
                        logger.debug("dispatched %s (%d/%d)", _ref_name(ref), job.dispatched, total)
                        self._notify(on_progress, job.completed, total, _ref_name(ref))
                    if not pending:
                        break
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for fut in sorted(done, key=lambda f: pending[f][0]):
                        _, ref = pending.pop(fut)
                        file_result = self._collect(ref, fut)
                        job.results.append(file_result)
                        job.completed += 1
                        self._notify(on_progress, job.completed, total, _ref_name(ref))
                        self._notify(on_file_complete, file_result)
                        if file_result.status == Status.ERROR:
                            self._notify(on_error, file_result)
        finally:
            # stopped early, by cancel() or by an exception escaping the loop
            cancelled = job.completed < total
            job.was_cancelled = cancelled
            job.state = BatchState.CANCELLED if cancelled else BatchState.COMPLETED
            with self._lock:
                self._state = job.state

        if job.was_cancelled:
            logger.warning("batch cancelled: %d of %d files completed", job.completed, total)
        else:
            logger.info("batch completed: %d files, %d errors", job.completed, job.error_count)
        return job
