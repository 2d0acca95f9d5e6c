"""
Future Combinators

Utilities for composing and combining futures without blocking.

None of these functions wait on the calling thread: each returns a derived
future whose settlement is computed from its sources'. Failures always carry
the original cause object, never a wrapper.
"""

import logging
import threading
from datetime import timedelta
from typing import TypeVar, List, Callable, Iterable, Optional, Union

from ..exceptions import FutureNotCompletedError, FutureNotFailedError
from .future import Future
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')
A = TypeVar('A')
B = TypeVar('B')
R = TypeVar('R')


def _require_future(future: object, name: str) -> None:
    if future is None:
        raise TypeError(f"{name} must not be None")
    if not isinstance(future, Future):
        raise TypeError(f"{name} must be a Future, got {type(future).__name__}")


def _require_callable(func: object, name: str) -> None:
    if func is None:
        raise TypeError(f"{name} must not be None")
    if not callable(func):
        raise TypeError(f"{name} must be callable, got {type(func).__name__}")


# =============================================================================
# Aggregation
# =============================================================================

def all_as_list(futures: Iterable[Future[T]]) -> Future[List[T]]:
    """
    Wait for all futures to succeed.

    Args:
        futures: Futures to combine (any iterable, including generators)

    Returns:
        Future of the values in the same order as the input. Fails as soon
        as any input fails, with that input's exception.

    Raises:
        TypeError: If futures or any of its elements is None

    Example:
        users, products = all_as_list([
            pool.run(load_users),
            pool.run(load_products),
        ]).get()
    """
    if futures is None:
        raise TypeError("futures must not be None")
    sources = list(futures)
    for index, source in enumerate(sources):
        _require_future(source, f"futures[{index}]")

    if not sources:
        return Future.make_ready([])

    result: Future[List[T]] = Future()
    values: List[Optional[T]] = [None] * len(sources)
    lock = threading.Lock()
    remaining = [len(sources)]

    def _collect(index: int, source: Future[T]) -> None:
        exception = source.exception()
        if exception is not None:
            result.set_exception(exception)
            return
        with lock:
            values[index] = source.get()
            remaining[0] -= 1
            finished = remaining[0] == 0
        if finished:
            result.set_result(list(values))

    for index, source in enumerate(sources):
        # One callback per position, so duplicates are collected independently
        source.add_done_callback(lambda f, i=index: _collect(i, f))
    return result


def successful_as_list(
    futures: Iterable[Future[T]],
    default_value_mapper: Callable[[BaseException], T],
) -> Future[List[T]]:
    """
    Wait for all futures, substituting a default for each failure.

    Args:
        futures: Futures to combine
        default_value_mapper: Called with the exception of each failed input;
            its return value takes that input's place in the list

    Returns:
        Future of the values in input order. Fails only if
        default_value_mapper raises.

    Example:
        prices = successful_as_list(
            [pool.run(fetch_price(s)) for s in symbols],
            lambda e: None,
        )
    """
    if futures is None:
        raise TypeError("futures must not be None")
    _require_callable(default_value_mapper, "default_value_mapper")
    sources = list(futures)
    for index, source in enumerate(sources):
        _require_future(source, f"futures[{index}]")
    return all_as_list(source.handle_error(default_value_mapper) for source in sources)


def exceptionally_completed_future(exception: BaseException) -> Future[T]:
    """
    Create a future that has already failed with exception.

    Raises:
        TypeError: If exception is None
    """
    if exception is None:
        raise TypeError("exception must not be None")
    return Future.make_exception(exception)


# =============================================================================
# Synchronous accessors
# =============================================================================

def is_completed(future: Future[T]) -> bool:
    """Check whether future has settled. Never blocks."""
    _require_future(future, "future")
    return future.is_ready()


def check_completed(future: Future[T]) -> None:
    """
    Check that a future has settled.

    Raises:
        FutureNotCompletedError: If the future is still pending
    """
    _require_future(future, "future")
    if not future.is_ready():
        raise FutureNotCompletedError("future was not completed")


def get_completed(future: Future[T]) -> T:
    """
    Get the value of a settled future.

    Returns:
        The future's value

    Raises:
        FutureNotCompletedError: If the future is still pending
        FutureCancelledError: If the future was cancelled
        The future's own exception if it failed
    """
    check_completed(future)
    return future.get()


def get_exception(future: Future[T]) -> BaseException:
    """
    Get the exception of a failed future.

    Returns:
        The exception the future failed with

    Raises:
        FutureNotFailedError: If the future is pending or succeeded
        FutureCancelledError: If the future was cancelled
    """
    _require_future(future, "future")
    if not future.failed():
        raise FutureNotFailedError("future was not completed exceptionally")
    exception = future.exception()
    if future.cancelled():
        raise exception
    return exception


# =============================================================================
# Composition
# =============================================================================

def handle_compose(
    future: Future[T],
    fn: Callable[[Optional[T], Optional[BaseException]], Future[U]],
) -> Future[U]:
    """
    Chain into another future whether the source succeeds or fails.

    fn is called once with (value, None) or (None, exception) and returns a
    future; the result settles the same way that future does. This differs
    from Future.handle() in that fn returns a future rather than a value.
    """
    _require_future(future, "future")
    _require_callable(fn, "fn")
    return dereference(future.handle(fn))


def exceptionally_compose(
    future: Future[T],
    fn: Callable[[BaseException], Future[T]],
) -> Future[T]:
    """
    Recover from failure with another future.

    On success the value passes through and fn is never called. On failure
    fn(exception) returns a future whose settlement is adopted. This differs
    from Future.handle_error() in that the recovery may itself be
    asynchronous.
    """
    _require_future(future, "future")
    _require_callable(fn, "fn")
    return dereference(_wrap(future).handle_error(fn))


def dereference(future: Future[Future[T]]) -> Future[T]:
    """
    Flatten a future of a future.

    Failure of either level propagates with its own exception.
    """
    _require_future(future, "future")
    return future.then_compose(lambda inner: inner)


def _wrap(future: Future[T]) -> Future[Future[T]]:
    return future.then(Future.make_ready)


def combine(a: Future[A], b: Future[B], function: Callable[[A, B], R]) -> Future[R]:
    """
    Combine two futures by applying a function to both values.

    Args:
        a: The first future
        b: The second future
        function: Combining function

    Returns:
        Future of function(a_value, b_value). Fails as soon as either input
        fails, with that input's exception.
    """
    _require_future(a, "a")
    _require_future(b, "b")
    _require_callable(function, "function")
    return a.then_combine(b, function)


# =============================================================================
# Polling
# =============================================================================

def _to_seconds(frequency: Union[float, timedelta]) -> float:
    if frequency is None:
        raise TypeError("frequency must not be None")
    if isinstance(frequency, timedelta):
        seconds = frequency.total_seconds()
    elif isinstance(frequency, (int, float)) and not isinstance(frequency, bool):
        seconds = float(frequency)
    else:
        raise TypeError(
            f"frequency must be seconds (int or float) or a timedelta, got {type(frequency).__name__}"
        )
    if seconds <= 0:
        raise ValueError(f"frequency must be positive, got {frequency!r}")
    return seconds


def poll(
    polling_task: Callable[[], Optional[T]],
    frequency: Union[float, timedelta],
    scheduler: Scheduler,
) -> Future[T]:
    """
    Poll periodically until a value becomes available.

    The polling task returns None until the value is available, then the
    value. If it raises, the result fails with that exception. The first
    poll runs immediately.

    Cancelling the returned future, or settling it any other way, cancels
    the scheduled polling task. The polling task is never invoked after the
    result has settled.

    Args:
        polling_task: Zero-argument callable
        frequency: Seconds (or timedelta) between polls
        scheduler: Where to schedule the polling task

    Returns:
        Future of the first non-None value returned by polling_task

    Example:
        job = poll(lambda: api.job_result(job_id), 0.5, scheduler)
        ...
        job.cancel()  # stop polling early
    """
    _require_callable(polling_task, "polling_task")
    period = _to_seconds(frequency)
    if scheduler is None:
        raise TypeError("scheduler must not be None")

    result: Future[T] = Future()
    handle = scheduler.schedule_at_fixed_rate(
        lambda: _poll_task(polling_task, result), 0, period
    )
    logger.debug(f"Polling {polling_task!r} every {period}s")

    def _stop_polling(f: Future[T]) -> None:
        handle.cancel()
        logger.debug(f"Stopped polling {polling_task!r} ({f!r})")

    # Runs immediately if the first poll already settled the result
    result.add_done_callback(_stop_polling)
    return result


def _poll_task(polling_task: Callable[[], Optional[T]], result: Future[T]) -> None:
    if result.is_ready():
        return
    try:
        value = polling_task()
    except BaseException as e:
        # Recorded in the result, as concurrent.futures does for worker items
        result.set_exception(e)
        return
    if value is not None:
        result.set_result(value)
