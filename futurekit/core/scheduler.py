"""
Periodic Task Scheduling

Scheduler interface consumed by poll(), plus a thread-backed default.
"""

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from ..config import SchedulerConfig
from ..exceptions import SchedulerShutdownError

logger = logging.getLogger(__name__)


@runtime_checkable
class ScheduledHandle(Protocol):
    """Cancellable token for a repeating task."""

    def cancel(self) -> bool:
        """Stop future executions. Safe to call any number of times."""
        ...

    def cancelled(self) -> bool:
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Anything that can run a task repeatedly at a fixed period."""

    def schedule_at_fixed_rate(
        self,
        task: Callable[[], None],
        initial_delay: float,
        period: float,
    ) -> ScheduledHandle:
        """
        Register task to run after initial_delay, then every period seconds.

        Returns:
            Handle that stops the task when cancelled
        """
        ...


class _ScheduledTask:
    """Heap entry and handle for one registered task."""

    def __init__(self, scheduler: 'ThreadScheduler', task: Callable[[], None],
                 next_run: float, period: float):
        self._scheduler = scheduler
        self.task = task
        self.next_run = next_run
        self.period = period
        self._cancelled = False
        self.stopped = False

    def cancel(self) -> bool:
        return self._scheduler._cancel(self)

    def cancelled(self) -> bool:
        with self._scheduler._condition:
            return self._cancelled

    def __repr__(self) -> str:
        return f"<ScheduledTask task={self.task!r} period={self.period}>"


class ThreadScheduler:
    """
    Fixed-rate scheduler backed by a single worker thread.

    Tasks run one at a time on the worker thread, outside the scheduler lock.
    A task that raises is logged and not run again.

    Example:
        with ThreadScheduler() as scheduler:
            handle = scheduler.schedule_at_fixed_rate(tick, 0, 0.5)
            ...
            handle.cancel()
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        """
        Create a scheduler.

        Args:
            config: Scheduler settings (defaults to SchedulerConfig())
        """
        self.config = config or SchedulerConfig()
        self._condition = threading.Condition()
        self._queue: List[Tuple[float, int, _ScheduledTask]] = []
        self._sequence = itertools.count()
        self._thread: Optional[threading.Thread] = None
        self._shutdown = False

    def schedule_at_fixed_rate(
        self,
        task: Callable[[], None],
        initial_delay: float,
        period: float,
    ) -> _ScheduledTask:
        """
        Register a repeating task.

        Args:
            task: Zero-argument callable
            initial_delay: Seconds before the first run (0 = run immediately)
            period: Seconds between the starts of consecutive runs

        Returns:
            Cancellable handle

        Raises:
            TypeError: If task is None
            ValueError: If period <= 0 or initial_delay < 0
            SchedulerShutdownError: If the scheduler was shut down
        """
        if task is None:
            raise TypeError("task must not be None")
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        if initial_delay < 0:
            raise ValueError(f"initial_delay must not be negative, got {initial_delay}")

        with self._condition:
            if self._shutdown:
                raise SchedulerShutdownError("scheduler has been shut down")
            entry = _ScheduledTask(self, task, time.monotonic() + initial_delay, period)
            self._push(entry)
            self._ensure_worker()
            self._condition.notify_all()

        logger.debug(f"Scheduled {entry!r} with initial delay {initial_delay}s")
        return entry

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop the worker thread and drop all pending tasks.

        Args:
            wait: Join the worker thread (up to config.join_timeout_secs)
        """
        with self._condition:
            if self._shutdown:
                return
            self._shutdown = True
            for _, _, entry in self._queue:
                entry._cancelled = True
            self._queue.clear()
            self._condition.notify_all()
            thread = self._thread

        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(self.config.join_timeout_secs)
        logger.debug("Scheduler shut down")

    def is_shutdown(self) -> bool:
        with self._condition:
            return self._shutdown

    def __enter__(self) -> 'ThreadScheduler':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _push(self, entry: _ScheduledTask) -> None:
        heapq.heappush(self._queue, (entry.next_run, next(self._sequence), entry))

    def _ensure_worker(self) -> None:
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(
                target=self._run,
                name=self.config.thread_name,
                daemon=self.config.daemon,
            )
            self._thread.start()

    def _cancel(self, entry: _ScheduledTask) -> bool:
        with self._condition:
            if entry._cancelled or entry.stopped:
                return False
            entry._cancelled = True
            # Lazy removal: the worker discards cancelled entries when popped
            self._condition.notify_all()
        logger.debug(f"Cancelled {entry!r}")
        return True

    def _next_due(self) -> Optional[_ScheduledTask]:
        """Block until a task is due; None once shut down."""
        with self._condition:
            while True:
                if self._shutdown:
                    return None
                while self._queue and self._queue[0][2]._cancelled:
                    heapq.heappop(self._queue)
                if not self._queue:
                    self._condition.wait()
                    continue
                due = self._queue[0][0]
                now = time.monotonic()
                if due > now:
                    self._condition.wait(due - now)
                    continue
                _, _, entry = heapq.heappop(self._queue)
                return entry

    def _run(self) -> None:
        while True:
            entry = self._next_due()
            if entry is None:
                return

            try:
                entry.task()
            except BaseException:
                # Includes SystemExit and KeyboardInterrupt: only this entry stops
                logger.exception(f"Scheduled task {entry!r} raised; not rescheduling")
                with self._condition:
                    entry.stopped = True
                continue

            with self._condition:
                if entry._cancelled or self._shutdown:
                    continue
                entry.next_run += entry.period
                now = time.monotonic()
                if entry.next_run < now:
                    # Overran: run once more now instead of bursting to catch up
                    entry.next_run = now
                self._push(entry)
