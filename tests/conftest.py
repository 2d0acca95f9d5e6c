"""pytest configuration and fixtures for futurekit tests."""

from typing import Callable, List

import pytest

from futurekit import SchedulerConfig, ThreadScheduler, WorkerPool, WorkerPoolConfig


class ManualHandle:
    """ScheduledHandle that records how often it was cancelled."""

    def __init__(self):
        self.cancel_calls = 0
        self._cancelled = False

    def cancel(self) -> bool:
        self.cancel_calls += 1
        if self._cancelled:
            return False
        self._cancelled = True
        return True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Scheduler that only runs tasks when tick() is called. Never sleeps."""

    def __init__(self):
        self.registrations: List[dict] = []

    def schedule_at_fixed_rate(self, task: Callable[[], None],
                               initial_delay: float, period: float) -> ManualHandle:
        handle = ManualHandle()
        self.registrations.append({
            'task': task,
            'initial_delay': initial_delay,
            'period': period,
            'handle': handle,
        })
        return handle

    def tick(self, times: int = 1, include_cancelled: bool = False) -> None:
        """Run every registered task once per tick.

        include_cancelled simulates a scheduler that fires once more after
        cancel() was requested but before it took effect.
        """
        for _ in range(times):
            for registration in list(self.registrations):
                if include_cancelled or not registration['handle'].cancelled():
                    registration['task']()

    @property
    def handle(self) -> ManualHandle:
        """Handle of the most recent registration."""
        return self.registrations[-1]['handle']


class EagerScheduler(ManualScheduler):
    """Runs the first tick synchronously inside schedule_at_fixed_rate()."""

    def schedule_at_fixed_rate(self, task, initial_delay, period):
        handle = super().schedule_at_fixed_rate(task, initial_delay, period)
        task()
        return handle


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def eager_scheduler() -> EagerScheduler:
    return EagerScheduler()


@pytest.fixture
def thread_scheduler() -> ThreadScheduler:
    """Real scheduler, shut down after the test.

    Yields:
        ThreadScheduler with a test-specific thread name.
    """
    scheduler = ThreadScheduler(SchedulerConfig(thread_name="futurekit-test-scheduler"))
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def worker_pool() -> WorkerPool:
    """Four-thread pool, shut down after the test."""
    pool = WorkerPool(WorkerPoolConfig(max_workers=4, thread_name_prefix="futurekit-test"))
    yield pool
    pool.shutdown()
