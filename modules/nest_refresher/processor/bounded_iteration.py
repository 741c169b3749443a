"""Bounded Concurrent Iteration

Runs a handler over every item of an iterable with at most ``concurrency``
worker threads. The calling thread feeds a bounded queue; workers pull from it.
The first handler error wins: no new work is issued once it is recorded, and it
is re-raised after all workers have stopped. A set cancellation event stops new
work the same way and raises RefreshCancelledError.
"""

import logging
import queue
import threading
from typing import Callable, Iterable, List, Optional, TypeVar

from ..exceptions import RefreshCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()


class _FirstError:
    """Locked slot that keeps the first recorded error."""

    def __init__(self):
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self.stop_event = threading.Event()

    def record(self, error: BaseException) -> None:
        with self._lock:
            if self._error is None:
                self._error = error
        self.stop_event.set()

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


class _Counter:
    def __init__(self):
        self._lock = threading.Lock()
        self.value = 0

    def increment(self) -> None:
        with self._lock:
            self.value += 1


def iterate_concurrently(items: Iterable[T], handler: Callable[[T], None],
                         concurrency: int,
                         cancel_event: Optional[threading.Event] = None) -> int:
    """Apply ``handler`` to every item with bounded parallelism.

    Args:
        items: Work items; consumed lazily from the calling thread
        handler: Called once per item; raising aborts the iteration
        concurrency: Maximum worker threads; <= 0 runs sequentially in the calling thread
        cancel_event: Optional event; once set, no new work is started

    Returns:
        Number of items handled

    Raises:
        RefreshCancelledError: If ``cancel_event`` was set before all items were handled
        Exception: The first error raised by ``handler`` or by ``items``
    """
    if concurrency <= 0:
        return _iterate_sequentially(items, handler, cancel_event)

    first_error = _FirstError()
    handled = _Counter()
    work: "queue.Queue" = queue.Queue(maxsize=concurrency * 2)

    def is_cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    def worker() -> None:
        while True:
            item = work.get()
            if item is _STOP:
                return
            # keep draining so the feeder never blocks on a full queue
            if first_error.stop_event.is_set():
                continue
            if is_cancelled():
                first_error.record(RefreshCancelledError(processed_count=handled.value))
                continue
            try:
                handler(item)
                handled.increment()
            except Exception as e:
                first_error.record(e)

    workers: List[threading.Thread] = [
        threading.Thread(target=worker, name=f"nest-refresh-{n}", daemon=True)
        for n in range(concurrency)
    ]
    for thread in workers:
        thread.start()

    try:
        for item in items:
            if first_error.stop_event.is_set():
                break
            if is_cancelled():
                first_error.record(RefreshCancelledError(processed_count=handled.value))
                break
            work.put(item)
    finally:
        for _ in workers:
            work.put(_STOP)
        for thread in workers:
            thread.join()

    if first_error.error is not None:
        raise first_error.error

    return handled.value


def _iterate_sequentially(items: Iterable[T], handler: Callable[[T], None],
                          cancel_event: Optional[threading.Event]) -> int:
    handled = 0
    for item in items:
        if cancel_event is not None and cancel_event.is_set():
            raise RefreshCancelledError(processed_count=handled)
        handler(item)
        handled += 1
    return handled
