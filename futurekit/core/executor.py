"""
Executor Interface and Thread Pool Adapter

Runs callables asynchronously and reports completion through a Future.
"""

import concurrent.futures
import logging
import threading
from typing import Callable, Optional, Protocol, TypeVar, runtime_checkable

from ..config import WorkerPoolConfig
from ..exceptions import ExecutorShutdownError
from .future import Future

logger = logging.getLogger(__name__)

T = TypeVar('T')


@runtime_checkable
class Executor(Protocol):
    """Anything that can run a computation asynchronously."""

    def run(self, task: Callable[[], T]) -> Future[T]:
        ...


def adapt(source: 'concurrent.futures.Future[T]') -> Future[T]:
    """
    Mirror a concurrent.futures.Future into a Future.

    Cancelling the returned future also cancels the source, if it has not
    started running yet.

    Args:
        source: A concurrent.futures future

    Returns:
        Future that settles the same way as source
    """
    if source is None:
        raise TypeError("source future must not be None")
    target: Future[T] = Future()

    def _copy(done: 'concurrent.futures.Future[T]') -> None:
        if done.cancelled():
            target.cancel()
            return
        exception = done.exception()
        if exception is not None:
            target.set_exception(exception)
        else:
            target.set_result(done.result())

    def _propagate_cancel(f: Future[T]) -> None:
        if f.cancelled():
            source.cancel()

    target.add_done_callback(_propagate_cancel)
    source.add_done_callback(_copy)
    return target


class WorkerPool:
    """
    Thread pool executor that returns Futures.

    Example:
        with WorkerPool() as pool:
            values = all_as_list([pool.run(fetch_a), pool.run(fetch_b)])
    """

    def __init__(self, config: Optional[WorkerPoolConfig] = None):
        """
        Create a worker pool.

        Args:
            config: Pool settings (defaults to WorkerPoolConfig())
        """
        self.config = config or WorkerPoolConfig()
        self._pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix=self.config.thread_name_prefix,
        )
        self._lock = threading.Lock()
        self._shutdown = False
        self.stats = {
            'tasks_submitted': 0,
        }

    def run(self, task: Callable[[], T]) -> Future[T]:
        """
        Run task on a worker thread.

        Args:
            task: Zero-argument callable

        Returns:
            Future for the task's return value or raised exception

        Raises:
            ExecutorShutdownError: If the pool was shut down
        """
        if task is None:
            raise TypeError("task must not be None")
        with self._lock:
            if self._shutdown:
                raise ExecutorShutdownError("worker pool has been shut down")
            submitted = self._pool.submit(task)
            self.stats['tasks_submitted'] += 1
        return adapt(submitted)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks and release the worker threads."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
        self._pool.shutdown(wait=wait)
        logger.debug(f"Worker pool shut down. Stats: {self.stats}")

    def __enter__(self) -> 'WorkerPool':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
