"""Progress reporting and cancellation shared with the calling thread."""

import threading
from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class ProcessingProgress:
    """Frames processed so far out of the expected total."""
    completed: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(1.0, self.completed / self.total)


class CancellationToken:
    """Cooperative cancellation flag, safe to set from any thread."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProgressReporter:
    """Thread-safe progress counter with an optional listener.

    The callback runs inline on the processing thread, or is handed to the
    given executor so it runs in the caller's context instead. Executor
    deliveries are serialized and stale updates are dropped, so the listener
    only ever sees increasing counts. A single-worker executor delivers every
    update; with more workers some intermediate counts may be skipped.

    Attributes:
        total: Expected number of frames
    """

    def __init__(self, total: int,
                 callback: Optional[Callable[[ProcessingProgress], None]] = None,
                 executor: Optional[Executor] = None):
        self.total = max(0, int(total))
        self._callback = callback
        self._executor = executor
        self._completed = 0
        self._lock = threading.Lock()
        self._delivery_lock = threading.Lock()
        self._delivered = 0
        self._pending: Optional[Future] = None
        self._failure: Optional[Exception] = None

    def advance(self, frames: int = 1) -> ProcessingProgress:
        """Count processed frames and notify the listener.

        Returns:
            The progress snapshot that was reported
        """
        with self._lock:
            self._completed += frames
            # Containers often under-report duration; never report past 100%
            if self._completed > self.total:
                self.total = self._completed
            progress = ProcessingProgress(self._completed, self.total)

        if self._callback is not None:
            if self._executor is not None:
                self._pending = self._executor.submit(self._deliver, progress)
            else:
                self._callback(progress)
        return progress

    def flush(self) -> None:
        """Wait for the last dispatched update to be delivered.

        Raises:
            Exception: The first exception raised by the callback on the executor
        """
        if self._pending is not None:
            wait([self._pending])
        if self._failure is not None:
            raise self._failure

    def snapshot(self) -> ProcessingProgress:
        with self._lock:
            return ProcessingProgress(self._completed, self.total)

    def _deliver(self, progress: ProcessingProgress) -> None:
        with self._delivery_lock:
            if progress.completed <= self._delivered:
                return
            self._delivered = progress.completed
            try:
                self._callback(progress)
            except Exception as e:
                if self._failure is None:
                    self._failure = e
                raise
