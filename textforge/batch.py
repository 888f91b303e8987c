#!/usr/bin/env python3
"""
Batch Coordinator v1.0.0
========================
Runs one document operation over many documents.

Two entry points with deliberately different failure policies:
- run_sync(): caller's thread, input order, fail-fast (the first failure
  raises BatchItemError and aborts the batch)
- run_async(): background worker, fail-isolated (each failure is reported
  through on_error and the batch carries on), returns a BatchRun handle

Run lifecycle: PENDING -> RUNNING -> COMPLETED | PARTIALLY_FAILED.
Nothing is retried.

Callbacks of an async run are all invoked from a single coordinator
thread, so they never overlap. on_complete is called exactly once, after
every document has been attempted and every earlier callback returned.
Successful results are delivered in input order even when a worker pool
finishes documents out of order.
"""

import uuid
import time
import queue
import threading
from enum import Enum
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from .config_logging import get_logger, get_config, StructuredLogger, BatchItemError, ValidationError
from .document import Document

__version__ = "1.0.0"

logger = get_logger('textforge.batch')

T = TypeVar('T')
Operation = Callable[[Document], Document]
ProgressCallback = Callable[[int, int], Any]
CompleteCallback = Callable[[List[Document]], Any]
ErrorCallback = Callable[[Document, Exception], Any]


class BatchStatus(Enum):
    """Overall batch run status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"

    @property
    def is_finished(self) -> bool:
        return self in (BatchStatus.COMPLETED, BatchStatus.PARTIALLY_FAILED)


@dataclass
class BatchProgress:
    """Progress counters for a run."""
    total: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    current_document: Optional[str] = None

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return self.attempted / self.total * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "percent": round(self.percent, 1),
            "current_document": self.current_document,
        }


@dataclass
class BatchResult:
    """Outcome of a batch: successful documents plus per-document failures."""
    successes: List[Document] = field(default_factory=list)
    failures: List[BatchItemError] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.successes)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "successes": [doc.to_dict() for doc in self.successes],
            "failures": [err.to_dict()["error"] for err in self.failures],
        }


@dataclass
class BatchRun:
    """Handle for an asynchronous batch run."""
    run_id: str
    status: BatchStatus = BatchStatus.PENDING
    progress: BatchProgress = field(default_factory=BatchProgress)
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    completed_at: Optional[float] = None
    result: Optional[BatchResult] = None
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def is_done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> Optional[BatchResult]:
        """
        Block until the run has finished and on_complete has returned.

        Returns:
            The BatchResult, or None if the timeout expired first
        """
        if not self._done.wait(timeout):
            return None
        return self.result

    @property
    def elapsed_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        end_time = self.completed_at or time.time()
        return end_time - self.started_at

    @property
    def elapsed_formatted(self) -> str:
        """Formatted elapsed time (e.g., '1m 23s')."""
        elapsed = self.elapsed_seconds
        if elapsed < 60:
            return f"{elapsed:.1f}s"
        minutes = int(elapsed // 60)
        seconds = int(elapsed % 60)
        return f"{minutes}m {seconds}s"

    @property
    def eta_seconds(self) -> Optional[float]:
        """Linear estimate of remaining time."""
        percent = self.progress.percent
        if self.status.is_finished or percent >= 100:
            return 0.0
        elapsed = self.elapsed_seconds
        if percent <= 0 or elapsed <= 0:
            return None
        rate = percent / elapsed
        return (100 - percent) / rate

    @property
    def eta_formatted(self) -> Optional[str]:
        eta = self.eta_seconds
        if eta is None:
            return None
        if eta < 60:
            return f"~{int(eta)}s"
        minutes = int(eta // 60)
        seconds = int(eta % 60)
        return f"~{minutes}m {seconds}s"

    def to_dict(self, include_result: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for status reporting."""
        data = {
            "run_id": self.run_id,
            "status": self.status.value,
            "progress": self.progress.to_dict(),
            "created_at": datetime.fromtimestamp(self.created_at).isoformat(),
            "started_at": datetime.fromtimestamp(self.started_at).isoformat() if self.started_at else None,
            "completed_at": datetime.fromtimestamp(self.completed_at).isoformat() if self.completed_at else None,
            "elapsed": self.elapsed_formatted,
            "eta": self.eta_formatted,
        }
        if include_result and self.result is not None:
            data["result"] = self.result.to_dict()
        return data


class BatchCoordinator:
    """
    Applies an operation to a collection of documents.

    The coordinator knows nothing about what the operation does; any
    callable taking a Document and returning a Document (or raising) will do.

    Usage:
        coordinator = BatchCoordinator(max_workers=4)
        run = coordinator.run_async(docs, op, on_progress=..., on_error=...)
        result = run.wait()
    """

    def __init__(self, max_workers: Optional[int] = None,
                 max_runs: Optional[int] = None, run_ttl: Optional[float] = None):
        """
        Args:
            max_workers: Worker threads per async run (1 = sequential)
            max_runs: Maximum runs kept for get_run()/list_runs()
            run_ttl: Seconds a finished run is kept
        """
        config = get_config()
        self.max_workers = max_workers if max_workers is not None else config.batch_workers
        if self.max_workers < 1:
            raise ValidationError("max_workers must be at least 1", field='max_workers')
        self._max_runs = max_runs if max_runs is not None else config.max_runs
        self._run_ttl = run_ttl if run_ttl is not None else config.run_ttl
        self._runs: Dict[str, BatchRun] = {}
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Synchronous, fail-fast
    # -------------------------------------------------------------------------

    def map_sync(self, documents: Iterable[Document], func: Callable[[Document], T]) -> List[T]:
        """
        Apply `func` to each document in input order.

        Raises:
            BatchItemError: for the first document whose call fails; the
                remaining documents are not attempted
        """
        documents = list(documents)
        logger.info(f"Starting batch processing of {len(documents)} documents")
        results = []
        for document in documents:
            try:
                results.append(func(document))
            except Exception as e:
                logger.error(f"Error processing document: {e}", document_id=getattr(document, 'id', None))
                raise BatchItemError(document, e) from e
        return results

    def run_sync(self, documents: Iterable[Document], operation: Operation) -> List[Document]:
        """Fail-fast batch returning the processed documents in input order."""
        return self.map_sync(documents, operation)

    # -------------------------------------------------------------------------
    # Asynchronous, fail-isolated
    # -------------------------------------------------------------------------

    def run_async(
        self,
        documents: Iterable[Document],
        operation: Operation,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> BatchRun:
        """
        Start a background batch and return immediately.

        Args:
            documents: Documents to process (snapshotted on submission)
            operation: Document -> Document callable
            on_progress: Called as (attempted, total) after each success
            on_complete: Called once with the successful results
            on_error: Called as (document, error) after each failure

        Returns:
            BatchRun handle; never raises for per-document failures

        Raises:
            ValidationError: an item is not a Document (nothing is started)
        """
        documents = list(documents)
        for position, document in enumerate(documents):
            if not isinstance(document, Document):
                raise ValidationError(
                    f"Batch item {position} is not a Document: {type(document).__name__}",
                    field='documents', position=position
                )
        run = BatchRun(run_id=str(uuid.uuid4())[:8])
        run.progress.total = len(documents)

        with self._lock:
            self._cleanup_old_runs()
            self._runs[run.run_id] = run

        worker = threading.Thread(
            target=self._execute,
            args=(run, documents, operation, on_progress, on_complete, on_error),
            daemon=True,
            name=f"textforge-batch-{run.run_id}"
        )
        worker.start()
        return run

    def _execute(self, run: BatchRun, documents: List[Document], operation: Operation,
                 on_progress: Optional[ProgressCallback],
                 on_complete: Optional[CompleteCallback],
                 on_error: Optional[ErrorCallback]):
        """Coordinator thread: drives workers and owns every callback."""
        StructuredLogger.set_correlation_id(run.run_id)
        total = len(documents)
        with self._lock:
            run.status = BatchStatus.RUNNING
            run.started_at = time.time()

        outputs: List[Optional[Document]] = [None] * total
        succeeded = [False] * total
        failures: List[BatchItemError] = []
        workers = min(self.max_workers, total)
        aborted = False

        try:
            with logger.log_operation("batch_run", run_id=run.run_id, total=total, workers=workers):
                for index, output, error in self._outcomes(documents, operation, workers):
                    document = documents[index]
                    with self._lock:
                        run.progress.attempted += 1
                        run.progress.current_document = document.name
                        if error is None:
                            run.progress.succeeded += 1
                        else:
                            run.progress.failed += 1
                        attempted = run.progress.attempted

                    if error is None:
                        outputs[index] = output
                        succeeded[index] = True
                        self._notify(on_progress, attempted, total)
                    else:
                        logger.error(f"Error in batch processing: {error}", document_id=document.id)
                        item_error = BatchItemError(document, error)
                        failures.append(item_error)
                        self._notify(on_error, document, item_error)
        except Exception as e:
            aborted = True
            logger.exception(f"Batch run {run.run_id} aborted: {e}", run_id=run.run_id)

        try:
            # on_complete fires exactly once, with whatever succeeded before an abort
            result = BatchResult(
                successes=[outputs[i] for i in range(total) if succeeded[i]],
                failures=failures,
            )
            with self._lock:
                run.result = result
                run.completed_at = time.time()
                run.progress.current_document = None
                failed = aborted or bool(failures)
                run.status = BatchStatus.PARTIALLY_FAILED if failed else BatchStatus.COMPLETED

            self._notify(on_complete, list(result.successes))
        finally:
            run._done.set()
            StructuredLogger.set_correlation_id(None)

    def _outcomes(self, documents: List[Document], operation: Operation, workers: int):
        """
        Yield (index, output, error) for every document as it finishes.

        Positions holding the same Document share one lane and run in
        sequence, so a document is never handled by two workers at once.
        """
        if workers <= 1:
            for index, document in enumerate(documents):
                yield (index,) + self._attempt(operation, document)
            return

        lanes: Dict[str, List[int]] = {}
        for index, document in enumerate(documents):
            lanes.setdefault(document.id, []).append(index)

        outcomes: 'queue.Queue' = queue.Queue()

        def run_lane(indices: List[int]):
            for index in indices:
                outcomes.put((index,) + self._attempt(operation, documents[index]))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="textforge-worker") as executor:
            for indices in lanes.values():
                executor.submit(run_lane, indices)
            for _ in range(len(documents)):
                yield outcomes.get()

    @staticmethod
    def _attempt(operation: Operation, document: Document):
        try:
            return operation(document), None
        except Exception as e:
            return None, e

    def _notify(self, callback: Optional[Callable], *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.exception(f"Batch callback {getattr(callback, '__name__', callback)!r} raised: {e}")

    # -------------------------------------------------------------------------
    # Run registry
    # -------------------------------------------------------------------------

    def get_run(self, run_id: str) -> Optional[BatchRun]:
        with self._lock:
            return self._runs.get(run_id)

    def list_runs(self, status: Optional[BatchStatus] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """
        List runs, newest first.

        Args:
            status: Only runs with this status
            limit: Maximum results
        """
        with self._lock:
            runs = list(self._runs.values())
            if status:
                runs = [r for r in runs if r.status == status]
            runs.sort(key=lambda r: r.created_at, reverse=True)
            return [r.to_dict() for r in runs[:limit]]

    def _cleanup_old_runs(self):
        """Drop finished runs past their TTL, then the oldest finished ones over capacity."""
        with self._lock:
            now = time.time()
            expired = [
                run_id for run_id, run in self._runs.items()
                if run.is_done and run.completed_at and (now - run.completed_at) > self._run_ttl
            ]
            for run_id in expired:
                del self._runs[run_id]

            if len(self._runs) >= self._max_runs:
                finished = sorted(
                    (r for r in self._runs.values() if r.is_done),
                    key=lambda r: r.completed_at or 0
                )
                while len(self._runs) >= self._max_runs and finished:
                    del self._runs[finished.pop(0).run_id]
