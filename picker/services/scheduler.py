"""Single-threaded queue of delayed, cancellable callbacks.

Spin animations and the pause between consecutive spins are wall-clock
delays, not parallel work.  Callbacks run on the thread that drives the
queue (:meth:`CallbackScheduler.run_pending` / :meth:`run_until_idle`), so
the picker state is only ever touched from one thread.
"""
import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger('wheelspin.scheduler')


class CallbackScheduler:
    """Runs callbacks after a delay, in due-time order (ties in call order).

    Args:
        clock: Monotonic time source in seconds.
        sleep: Function used by :meth:`run_until_idle` to wait.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self._clock = clock
        self._sleep = sleep
        self._queue: List[Tuple[float, int, Callable[[], object]]] = []
        self._counter = itertools.count()
        self._cancelled = set()

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to run."""
        return sum(1 for _, handle, _ in self._queue if handle not in self._cancelled)

    def call_later(self, delay: float, callback: Callable[[], object]) -> int:
        """Schedule *callback* to run *delay* seconds from now.  Returns a handle."""
        handle = next(self._counter)
        heapq.heappush(self._queue, (self._clock() + max(0.0, delay), handle, callback))
        return handle

    def cancel(self, handle: Optional[int]) -> bool:
        """Cancel a scheduled callback.  Returns ``False`` if it already ran or is unknown."""
        if handle is None or handle in self._cancelled:
            return False
        if any(h == handle for _, h, _ in self._queue):
            self._cancelled.add(handle)
            return True
        return False

    def _pop_cancelled(self) -> None:
        while self._queue and self._queue[0][1] in self._cancelled:
            _, handle, _ = heapq.heappop(self._queue)
            self._cancelled.discard(handle)

    def next_due(self) -> Optional[float]:
        """Return the clock time of the next live callback, or ``None``."""
        self._pop_cancelled()
        return self._queue[0][0] if self._queue else None

    def run_pending(self) -> int:
        """Run every callback that is due now.  Returns how many ran."""
        ran = 0
        while True:
            due = self.next_due()
            if due is None or due > self._clock():
                return ran
            _, _, callback = heapq.heappop(self._queue)
            callback()
            ran += 1

    def run_until_idle(self, max_wait: Optional[float] = None) -> int:
        """Sleep through the queue, running callbacks as they fall due.

        Callbacks may schedule further callbacks; those run too.  Stops when
        the queue is empty or, if *max_wait* is given, once that many seconds
        of waiting have passed.

        Returns:
            The number of callbacks run.
        """
        start = self._clock()
        ran = 0
        while True:
            due = self.next_due()
            if due is None:
                return ran
            now = self._clock()
            if max_wait is not None and due - start > max_wait:
                logger.debug("Stopping with %d callbacks pending", self.pending)
                return ran
            if due > now:
                self._sleep(due - now)
            ran += self.run_pending()
