"""Cancellable background timers for cache maintenance.

Three handle types, each backed by at most one daemon worker thread:

    RepeatingTimer - runs a callback every ``interval`` seconds until cancelled
    Debouncer      - collapses a burst of schedule() calls into one deferred run
    DeadlineQueue  - runs many one-shot callbacks at their deadlines

Rescheduling moves a deadline instead of starting a new thread, so a burst
of writes or thousands of TTL entries never costs more than one sleeping
thread per handle. Workers are daemon threads and exit when their handle
is cancelled or has nothing left to wait for. Owners that must not be kept
alive by their timer pass a callback holding only a weak reference to
themselves.

Thread Safety:
    All state transitions are protected by a lock or condition. Callbacks
    run outside it so they may call back into the handle (e.g. schedule()
    from within a flush).

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections.abc import Callable

__all__ = ["DeadlineQueue", "Debouncer", "RepeatingTimer", "ScheduledCall"]

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Run a callback at a fixed interval on a daemon thread.

    The callback may return False to stop the timer (used when the owner
    has been garbage-collected).

    Example:
        >>> timer = RepeatingTimer(60.0, lambda: None)
        >>> timer.start()
        >>> timer.active
        True
        >>> timer.cancel()
        >>> timer.active
        False
    """

    __slots__ = ("_callback", "_interval", "_lock", "_stop", "_thread")

    def __init__(self, interval: float, callback: Callable[[], bool | None]) -> None:
        """Initialize the timer (not started).

        Args:
            interval: Seconds between runs (must be positive)
            callback: Function to run; returning False stops the timer

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            msg = "interval must be positive"
            raise ValueError(msg)
        self._interval = interval
        self._callback = callback
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the timer. No-op if already running or cancelled."""
        with self._lock:
            if self._thread is not None or self._stop.is_set():
                return
            thread = threading.Thread(
                target=self._run, name="i18ncore-repeating-timer", daemon=True
            )
            self._thread = thread
            thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            if self._callback() is False:
                break
        self._stop.set()

    def cancel(self) -> None:
        """Stop the timer. Idempotent."""
        self._stop.set()

    @property
    def active(self) -> bool:
        """True while runs are scheduled."""
        with self._lock:
            return self._thread is not None and not self._stop.is_set()

    @property
    def interval(self) -> float:
        """Seconds between runs."""
        return self._interval


class Debouncer:
    """Collapse bursts of triggers into a single deferred callback run.

    schedule() pushes the deadline ``delay`` seconds into the future.
    flush() cancels the pending run and executes the callback immediately
    on the calling thread.

    Example:
        >>> calls = []
        >>> debouncer = Debouncer(1.0, lambda: calls.append(1))
        >>> debouncer.schedule()
        >>> debouncer.schedule()
        >>> debouncer.flush()
        >>> calls
        [1]
    """

    __slots__ = ("_callback", "_closed", "_condition", "_deadline", "_delay", "_worker")

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        """Initialize the debouncer.

        Args:
            delay: Quiet period in seconds before the callback runs (must be positive)
            callback: Function to run once per burst

        Raises:
            ValueError: If delay is not positive
        """
        if delay <= 0:
            msg = "delay must be positive"
            raise ValueError(msg)
        self._delay = delay
        self._callback = callback
        self._condition = threading.Condition()
        self._deadline: float | None = None
        self._worker: threading.Thread | None = None
        self._closed = False

    def schedule(self) -> None:
        """Schedule (or reschedule) the deferred run. No-op once closed."""
        with self._condition:
            if self._closed:
                return
            self._deadline = time.monotonic() + self._delay
            if self._worker is None:
                worker = threading.Thread(
                    target=self._run, name="i18ncore-debouncer", daemon=True
                )
                self._worker = worker
                worker.start()
            self._condition.notify()

    def _run(self) -> None:
        while True:
            with self._condition:
                while True:
                    if self._closed or self._deadline is None:
                        self._worker = None
                        return
                    remaining = self._deadline - time.monotonic()
                    if remaining <= 0:
                        self._deadline = None
                        break
                    self._condition.wait(remaining)
            try:
                self._callback()
            except Exception:
                logger.exception("Debounced callback failed")

    def flush(self) -> None:
        """Cancel any pending run and execute the callback now."""
        self.cancel()
        self._callback()

    def cancel(self) -> None:
        """Cancel the pending run, if any. Idempotent."""
        with self._condition:
            self._deadline = None
            self._condition.notify()

    def close(self) -> None:
        """Cancel and refuse further schedule() calls. Idempotent."""
        with self._condition:
            self._closed = True
            self._deadline = None
            self._condition.notify()
        logger.debug("Debouncer closed")

    @property
    def pending(self) -> bool:
        """True while a deferred run is scheduled."""
        with self._condition:
            return self._deadline is not None

    @property
    def delay(self) -> float:
        """Quiet period in seconds."""
        return self._delay


class ScheduledCall:
    """Handle for a callback submitted to a DeadlineQueue."""

    __slots__ = ("callback", "cancelled", "done")

    def __init__(self, callback: Callable[[], object]) -> None:
        self.callback = callback
        self.cancelled = False
        self.done = False


class DeadlineQueue:
    """Run one-shot callbacks at their deadlines from one worker thread.

    Deadlines live in a heap; the worker sleeps until the earliest one.
    Cancelled calls are dropped lazily, and the heap is compacted once
    they make up more than half of it.

    Example:
        >>> queue = DeadlineQueue()
        >>> call = queue.submit(60.0, lambda: None)
        >>> queue.pending
        1
        >>> queue.cancel(call)
        >>> queue.pending
        0
        >>> queue.close()
    """

    __slots__ = ("_closed", "_condition", "_heap", "_sequence", "_stale", "_worker")

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._heap: list[tuple[float, int, ScheduledCall]] = []
        self._sequence = itertools.count()
        self._stale = 0
        self._worker: threading.Thread | None = None
        self._closed = False

    def submit(self, delay: float, callback: Callable[[], object]) -> ScheduledCall:
        """Run callback after delay seconds.

        A queue that has been closed accepts the call but never runs it.
        """
        call = ScheduledCall(callback)
        with self._condition:
            if self._closed:
                call.cancelled = True
                return call
            heapq.heappush(self._heap, (time.monotonic() + delay, next(self._sequence), call))
            if self._worker is None:
                worker = threading.Thread(
                    target=self._run, name="i18ncore-deadlines", daemon=True
                )
                self._worker = worker
                worker.start()
            self._condition.notify()
        return call

    def cancel(self, call: ScheduledCall) -> None:
        """Cancel a submitted call. No-op if it already ran or was cancelled."""
        with self._condition:
            if call.cancelled or call.done:
                return
            call.cancelled = True
            self._stale += 1
            if self._stale * 2 > len(self._heap):
                self._heap = [item for item in self._heap if not item[2].cancelled]
                heapq.heapify(self._heap)
                self._stale = 0
            self._condition.notify()

    def _run(self) -> None:
        while True:
            with self._condition:
                while True:
                    while self._heap and self._heap[0][2].cancelled:
                        heapq.heappop(self._heap)
                        self._stale = max(0, self._stale - 1)
                    if self._closed or not self._heap:
                        self._worker = None
                        return
                    remaining = self._heap[0][0] - time.monotonic()
                    if remaining <= 0:
                        call = heapq.heappop(self._heap)[2]
                        call.done = True
                        break
                    self._condition.wait(remaining)
            try:
                call.callback()
            except Exception:
                logger.exception("Scheduled callback failed")

    def close(self) -> None:
        """Cancel every pending call and stop the worker. Idempotent."""
        with self._condition:
            self._closed = True
            for _, _, call in self._heap:
                call.cancelled = True
            self._heap.clear()
            self._stale = 0
            self._condition.notify()

    @property
    def pending(self) -> int:
        """Number of calls waiting for their deadline."""
        with self._condition:
            return len(self._heap) - self._stale
